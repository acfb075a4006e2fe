"""
Comment mention parsing.
"""

import re

MENTION_PATTERN = re.compile(r"@([a-zA-Z0-9_]+)")


def extract_mentions(content: str) -> list[str]:
    """Return mentioned usernames in order of first appearance, without duplicates."""
    return list(dict.fromkeys(MENTION_PATTERN.findall(content or "")))


def added_mentions(previous: list[str], current: list[str]) -> list[str]:
    """Mentions present in ``current`` but not in ``previous``."""
    known = set(previous)
    return [m for m in current if m not in known]
