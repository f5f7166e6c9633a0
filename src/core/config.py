"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Rule:
    """A named filter with optional regex patterns and an action token.

    Empty pattern strings mean "no constraint" for that field. A rule with
    no patterns at all matches every entry.
    """

    name: str
    action: str
    feed: str = ""
    author: str = ""
    title: str = ""
    content: str = ""


@dataclass(frozen=True)
class RunConfig:
    """Validated application config consumed by the app layer."""

    miniflux_url: str
    interval: int
    rules: List[Rule] = field(default_factory=list)
    logging: dict = field(default_factory=dict)
