"""
Shared utilities for FOLIO.

Common functionality used across contexts:
- Logger setup with provenance
- Timestamps
- Environment settings and collaborator loading
"""

from folio.utils.settings import load_collaborator, load_object
from folio.utils.timestamp import format_elapsed, now, utc_now

__all__ = [
    "format_elapsed",
    "load_collaborator",
    "load_object",
    "now",
    "utc_now",
]
