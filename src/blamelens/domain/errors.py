class BlameLensError(Exception):
    """Base exception for domain-specific errors."""


class NoBlameDataError(BlameLensError):
    """A placeholder's range maps to no blamed lines."""


class UpstreamFetchError(BlameLensError):
    """The blame or symbol service failed to produce data for a file."""


class ConfigurationError(BlameLensError):
    """Bad CLI args or unusable environment settings."""


class TokenDecodeError(BlameLensError):
    """A reference token could not be decoded back into its fields."""
