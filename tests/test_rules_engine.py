from __future__ import annotations

from typing import Optional

import pytest

from core.config import Rule
from core.models import Entry, Feed
from core.rules_engine import Matcher, RuleCompileError, build_rules


def _entry(
    *,
    title: str = "Test Post",
    author: str = "Bob",
    content: str = "This is a #promo post",
    feed_title: Optional[str] = "Tech News",
) -> Entry:
    feed = Feed(id=1, title=feed_title) if feed_title is not None else None
    return Entry(id=1, title=title, author=author, content=content, feed=feed)


def test_match_all_fields_required() -> None:
    matcher = Matcher(
        [Rule(name="promos", feed="Tech News", author="Bob", content="#promo", action="remove")]
    )

    result = matcher.match(_entry())
    assert result.matched
    assert result.action == "remove"
    assert result.rule.name == "promos"

    assert not matcher.match(_entry(feed_title="World News")).matched
    assert not matcher.match(_entry(author="Alice")).matched
    assert not matcher.match(_entry(content="plain post")).matched


def test_unpopulated_fields_are_ignored() -> None:
    matcher = Matcher([Rule(name="bob", author="Bob", action="read")])

    for entry in (
        _entry(),
        _entry(title="Anything", content="", feed_title=None),
        _entry(feed_title="Other", content="unrelated"),
    ):
        assert matcher.match(entry).matched


def test_first_matching_rule_wins() -> None:
    matcher = Matcher(
        [
            Rule(name="first", author="Bob", action="read"),
            Rule(name="second", author="Bob", action="remove"),
        ]
    )

    result = matcher.match(_entry())
    assert result.rule.name == "first"
    assert result.action == "read"


def test_later_rule_matches_when_earlier_does_not() -> None:
    matcher = Matcher(
        [
            Rule(name="alice", author="Alice", action="read"),
            Rule(name="bob", author="Bob", action="remove"),
        ]
    )

    assert matcher.match(_entry()).rule.name == "bob"


def test_feedless_entry_never_matches_feed_pattern() -> None:
    matcher = Matcher([Rule(name="tech", feed="Tech.*", action="read")])
    assert not matcher.match(_entry(feed_title=None)).matched

    any_feed = Matcher([Rule(name="any", feed=".+", action="read")])
    assert not any_feed.match(_entry(feed_title=None)).matched


def test_wildcard_rule_matches_everything() -> None:
    matcher = Matcher([Rule(name="all", action="read")])
    assert matcher.match(_entry(feed_title=None, author="", content="")).matched


def test_matching_is_case_sensitive_unless_pattern_says_otherwise() -> None:
    strict = Matcher([Rule(name="strict", title="sponsored", action="read")])
    assert not strict.match(_entry(title="Sponsored Post")).matched

    relaxed = Matcher([Rule(name="relaxed", title="(?i)sponsored|advertisement", action="read")])
    assert relaxed.match(_entry(title="SPONSORED Post")).matched
    assert relaxed.match(_entry(title="An Advertisement")).matched


def test_action_is_lowercased_without_validation() -> None:
    assert Matcher([Rule(name="r", action="READ")]).match(_entry()).action == "read"
    assert Matcher([Rule(name="r", action="Archive")]).match(_entry()).action == "archive"


def test_empty_rule_set_never_matches() -> None:
    matcher = Matcher([])
    assert len(matcher) == 0
    assert not matcher.match(_entry()).matched


@pytest.mark.parametrize("field", ["feed", "author", "title", "content"])
def test_invalid_regex_reports_field(field: str) -> None:
    rule = Rule(name="broken", action="read", **{field: "[invalid"})

    with pytest.raises(RuleCompileError) as exc_info:
        Matcher([rule])

    assert exc_info.value.field == field
    assert exc_info.value.rule_name == "broken"
    assert "broken" in str(exc_info.value)


def test_compilation_stops_at_first_invalid_rule() -> None:
    rules = [
        Rule(name="ok", author="Bob", action="read"),
        Rule(name="bad", title="(unclosed", action="read"),
        Rule(name="also-bad", content="*nope", action="read"),
    ]

    with pytest.raises(RuleCompileError) as exc_info:
        Matcher(rules)

    assert exc_info.value.rule_name == "bad"
    assert exc_info.value.field == "title"


def test_build_rules_returns_matcher_in_declaration_order() -> None:
    matcher = build_rules(
        [
            Rule(name="first", author="Bob", action="read"),
            Rule(name="second", action="remove"),
        ]
    )

    assert len(matcher) == 2
    assert [rule.name for rule in matcher.rules] == ["first", "second"]
    assert matcher.match(_entry(author="Alice")).rule.name == "second"
