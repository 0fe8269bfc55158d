"""
Common utilities package for the todo service.

Logging setup, identifier parsing and time helpers are re-exported here.
``app.utils.auth`` and ``app.utils.retry_utils`` read the settings and are
imported by module path, since ``app.config`` itself depends on the logger.
"""

from app.utils.clock import ensure_utc, round_half_up, utc_now
from app.utils.identifiers import parse_identifier
from app.utils.logger import setup_logger

__all__ = [
    # Time utilities
    "ensure_utc",
    "round_half_up",
    "utc_now",
    # Identifier utilities
    "parse_identifier",
    # Logging utilities
    "setup_logger",
]
