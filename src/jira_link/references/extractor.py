"""Jira issue reference extraction from pull request text.

A reference is a Jira browse URL, ``https://<domain>/browse/<KEY>-<NUMBER>``,
written in the PR description or in one of its comments. By default a
reference only counts when it follows a closing keyword, the same
convention GitHub uses for its own issues:

    Closes https://acme.atlassian.net/browse/ABC-1, https://acme.atlassian.net/browse/ABC-2

Keyword, scheme and domain are matched case-insensitively. The issue key
itself must be upper case; URLs with any other key shape are ignored.
"""

import re
from typing import Iterable, List, Optional, Pattern, Sequence

CLOSING_KEYWORDS = (
    "close",
    "closes",
    "closed",
    "fix",
    "fixes",
    "fixed",
    "resolve",
    "resolves",
    "resolved",
)

# The key group opts out of IGNORECASE so "abc-1" is not a reference.
ISSUE_KEY_PATTERN = r"(?-i:([A-Z]+-\d+))"

# Clauses accept any key case; malformed keys are dropped per URL later.
CLAUSE_KEY_PATTERN = r"[A-Z]+-\d+"


def build_url_pattern(jira_domain: str, key_pattern: str = ISSUE_KEY_PATTERN) -> str:
    """Regex source matching one browse URL and capturing its issue key."""
    return rf"https://{re.escape(jira_domain)}/browse/{key_pattern}"


def build_reference_pattern(
    jira_domain: str,
    require_keyword_prefix: bool = True,
) -> Pattern[str]:
    """Compile the clause matcher for one Jira domain.

    A clause is an optional closing keyword followed by one or more browse
    URLs separated by commas.

    Args:
        jira_domain: Jira host name, matched literally.
        require_keyword_prefix: Whether a closing keyword must precede the
            URLs for the clause to match.

    Returns:
        Compiled case-insensitive pattern.
    """
    url = build_url_pattern(jira_domain, CLAUSE_KEY_PATTERN)
    keywords = (
        rf"\b(?:{'|'.join(CLOSING_KEYWORDS)})\s+" if require_keyword_prefix else ""
    )
    return re.compile(rf"{keywords}{url}(?:\s*,\s*{url})*", re.IGNORECASE)


def match_issue_keys(
    text: Optional[str],
    clause_pattern: Pattern[str],
    url_pattern: Pattern[str],
) -> List[str]:
    """Return the issue keys referenced in one text, first-seen order."""
    if not text:
        return []

    keys: List[str] = []
    for clause in clause_pattern.finditer(text):
        keys.extend(url.group(1) for url in url_pattern.finditer(clause.group(0)))
    return _unique(keys)


def extract_issue_references(
    body: Optional[str],
    comments: Sequence[str],
    jira_domain: str,
    require_keyword_prefix: bool = True,
) -> List[str]:
    """Extract the Jira issue keys a pull request refers to.

    The body is scanned first, then each comment in the order given.
    Keys are deduplicated across all texts, keeping first-seen order.

    Args:
        body: The PR description; ``None`` contributes nothing.
        comments: Comment bodies in display order.
        jira_domain: Jira host name the URLs must point to.
        require_keyword_prefix: Only count URLs preceded by a closing
            keyword (``closes``, ``fixes``, ``resolved``, ...).

    Returns:
        Duplicate-free list of issue keys such as ``["ABC-1", "ABC-7"]``.
    """
    clause_pattern = build_reference_pattern(jira_domain, require_keyword_prefix)
    url_pattern = re.compile(build_url_pattern(jira_domain), re.IGNORECASE)

    keys: List[str] = []
    for text in (body, *comments):
        keys.extend(match_issue_keys(text, clause_pattern, url_pattern))
    return _unique(keys)


def _unique(keys: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(keys))
