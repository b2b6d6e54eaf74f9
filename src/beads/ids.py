"""Helpers for issue identifiers."""

from __future__ import annotations


def extract_issue_prefix(issue_id: str) -> str:
    """Return the prefix part of an issue identifier.

    The prefix is everything before the last hyphen, so multi-part prefixes
    survive: ``"old-prefix-42"`` yields ``"old-prefix"``. Identifiers without a
    hyphen have no prefix and yield an empty string.
    """

    prefix, sep, _ = issue_id.strip().rpartition("-")
    if not sep:
        return ""
    return prefix
