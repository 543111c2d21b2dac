from .errors import (
    BlameLensError,
    ConfigurationError,
    NoBlameDataError,
    TokenDecodeError,
    UpstreamFetchError,
)
from .models import (
    ELIGIBLE_KINDS,
    BlamePlaceholder,
    Document,
    HistoryPlaceholder,
    LineRecord,
    Location,
    Placeholder,
    Position,
    Range,
    ReferenceToken,
    ResolutionFailure,
    ResolvedAnnotation,
    RevisionGroup,
    Symbol,
    SymbolKind,
)
from .relative_time import from_now

__all__ = [
    "BlameLensError",
    "ConfigurationError",
    "NoBlameDataError",
    "TokenDecodeError",
    "UpstreamFetchError",
    "ELIGIBLE_KINDS",
    "BlamePlaceholder",
    "Document",
    "HistoryPlaceholder",
    "LineRecord",
    "Location",
    "Placeholder",
    "Position",
    "Range",
    "ReferenceToken",
    "ResolutionFailure",
    "ResolvedAnnotation",
    "RevisionGroup",
    "Symbol",
    "SymbolKind",
    "from_now",
]
