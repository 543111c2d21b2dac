# Licensed under the Apache License, Version 2.0
"""
Process-wide logging for the blamelens CLI.

  BLAMELENS_LOG_LEVEL   level name, e.g. DEBUG or WARNING (default INFO;
                        unknown names fall back to INFO)
  BLAMELENS_LOG_FORMAT  logging format string (default DEFAULT_FORMAT)

Library modules only call logging.getLogger(__name__); nothing is configured
until the CLI imports this module and calls setup_logging().
"""
import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging() -> None:
    level_name = os.getenv("BLAMELENS_LOG_LEVEL", "INFO").strip().upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    fmt = os.getenv("BLAMELENS_LOG_FORMAT") or DEFAULT_FORMAT
    logging.basicConfig(level=level, format=fmt)
