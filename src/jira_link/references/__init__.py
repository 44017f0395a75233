"""Pure text rules applied to the triggering pull request.

- Issue reference extraction from the description and comments
- Draft classification from the native flag or the title convention
"""

from .draft import DraftKind, classify_draft, is_draft, is_draft_title
from .extractor import (
    CLOSING_KEYWORDS,
    build_reference_pattern,
    extract_issue_references,
    match_issue_keys,
)

__all__ = [
    "CLOSING_KEYWORDS",
    "DraftKind",
    "build_reference_pattern",
    "classify_draft",
    "extract_issue_references",
    "is_draft",
    "is_draft_title",
    "match_issue_keys",
]
