# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .domain.errors import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Runtime settings; environment first, CLI options override."""
    git_executable: str = "git"
    blame_timeout: float = 30.0
    include_history: bool = False

    def override(self, **changes) -> Settings:
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _flag(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read settings from the environment:
      BLAMELENS_GIT            git executable (default "git")
      BLAMELENS_BLAME_TIMEOUT  seconds allowed for one blame run (default 30)
      BLAMELENS_HISTORY        also emit "View History" annotations (default off)
    """
    env = os.environ if env is None else env
    settings = Settings()

    git = env.get("BLAMELENS_GIT")
    if git is not None:
        if not git.strip():
            raise ConfigurationError("BLAMELENS_GIT must not be empty")
        settings = replace(settings, git_executable=git.strip())

    timeout = env.get("BLAMELENS_BLAME_TIMEOUT")
    if timeout is not None:
        try:
            value = float(timeout)
        except ValueError as e:
            raise ConfigurationError(f"BLAMELENS_BLAME_TIMEOUT must be a number: {e}") from e
        if not math.isfinite(value) or value <= 0:
            raise ConfigurationError(
                f"BLAMELENS_BLAME_TIMEOUT must be a finite number > 0, got {timeout!r}"
            )
        settings = replace(settings, blame_timeout=value)

    history = env.get("BLAMELENS_HISTORY")
    if history is not None:
        settings = replace(settings, include_history=_flag("BLAMELENS_HISTORY", history))

    return settings
