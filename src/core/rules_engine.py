"""Rule compilation and matching logic (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable, List, Optional, Tuple

from core.config import Rule
from core.models import Entry

LOGGER = logging.getLogger(__name__)

# Order matters: compilation reports the first invalid field in this order.
PATTERN_FIELDS: Tuple[str, ...] = ("feed", "author", "title", "content")


class RuleCompileError(ValueError):
    """A rule pattern is not a valid regular expression."""

    def __init__(self, rule_name: str, field: str, error: re.error) -> None:
        super().__init__(f"invalid regex in rule '{rule_name}' field '{field}': {error}")
        self.rule_name = rule_name
        self.field = field


@dataclass(frozen=True)
class CompiledRule:
    """A rule paired with its pre-compiled patterns (None = no constraint)."""

    rule: Rule
    feed: Optional[re.Pattern] = None
    author: Optional[re.Pattern] = None
    title: Optional[re.Pattern] = None
    content: Optional[re.Pattern] = None

    def matches(self, entry: Entry) -> bool:
        """Return True when every present pattern matches its entry field."""

        checks = (
            (self.feed, entry.feed_title),
            (self.author, entry.author),
            (self.title, entry.title),
            (self.content, entry.content),
        )
        for pattern, value in checks:
            if pattern is not None and not pattern.search(value or ""):
                return False
        return True


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one entry; ``action`` is lower-cased."""

    matched: bool
    rule: Optional[Rule] = None
    action: str = ""


NO_MATCH = MatchResult(matched=False)


def compile_rule(rule: Rule) -> CompiledRule:
    """Compile the non-empty patterns of a single rule.

    Raises RuleCompileError naming the rule and the first invalid field.
    """

    patterns = {}
    for field in PATTERN_FIELDS:
        raw = getattr(rule, field)
        if not raw:
            continue
        try:
            patterns[field] = re.compile(raw)
        except re.error as exc:
            raise RuleCompileError(rule.name, field, exc) from exc
    return CompiledRule(rule=rule, **patterns)


class Matcher:
    """Immutable, ordered set of compiled rules.

    Matching logic:
    - Rules are evaluated in declaration order; the first full match wins.
    - Within a rule, all non-empty patterns must match (AND).
    - Patterns use ``re.search`` semantics and are case-sensitive unless the
      pattern itself embeds a flag such as ``(?i)``.
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        # Fail fast: the first invalid pattern aborts construction.
        self._compiled: Tuple[CompiledRule, ...] = tuple(compile_rule(rule) for rule in rules)

    def __len__(self) -> int:
        return len(self._compiled)

    @property
    def rules(self) -> List[Rule]:
        return [compiled.rule for compiled in self._compiled]

    def match(self, entry: Entry) -> MatchResult:
        """Return the first rule that fully matches ``entry``."""

        for compiled in self._compiled:
            if compiled.matches(entry):
                return MatchResult(
                    matched=True,
                    rule=compiled.rule,
                    action=compiled.rule.action.lower(),
                )
        return NO_MATCH


def build_rules(rules: Iterable[Rule]) -> Matcher:
    """Compile rule configs into a Matcher, failing on the first bad pattern."""

    matcher = Matcher(rules)
    LOGGER.debug("Compiled %s rules", len(matcher))
    return matcher
