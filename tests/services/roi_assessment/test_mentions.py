"""
Mention Parsing Tests
=====================

Version: 0.1.0
"""

from services.roi_assessment.services.mentions import added_mentions, extract_mentions


def test_extract_mentions_in_order_without_duplicates() -> None:
    content = "@alice please check with @bob_2 and @alice again"

    assert extract_mentions(content) == ["alice", "bob_2"]


def test_extract_mentions_ignores_plain_text() -> None:
    assert extract_mentions("no mentions here") == []
    assert extract_mentions("") == []


def test_added_mentions() -> None:
    assert added_mentions(["alice"], ["alice", "carol"]) == ["carol"]
