"""Path exclusion rules for coverage accounting.

An ExclusionFilterSet is plain data: the report code only iterates it, so new
rules are added here (or via ``report.extra_exclusions``) without touching
report logic. A source file matching any rule contributes to neither the
covered nor the instrumented count.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from covpipe.config.constants import DEFAULT_EXCLUSION_RULES


@dataclass(frozen=True, slots=True)
class ExclusionRule:
    """A named path regex."""

    name: str
    pattern: str

    def matches(self, path: str) -> bool:
        # Normalize Windows separators so the same rules apply everywhere
        return re.search(self.pattern, path.replace("\\", "/")) is not None


@dataclass(frozen=True, slots=True)
class ExclusionFilterSet:
    """Ordered, immutable set of exclusion rules."""

    rules: tuple[ExclusionRule, ...] = ()

    @classmethod
    def default(cls, extra: Iterable[str] = ()) -> ExclusionFilterSet:
        """Built-in rules followed by any extra patterns."""
        base = cls(tuple(ExclusionRule(name, pattern) for name, pattern in DEFAULT_EXCLUSION_RULES))
        return base.extend(extra)

    def extend(self, patterns: Iterable[str]) -> ExclusionFilterSet:
        """Return a new set with ``patterns`` appended as ``extra-N`` rules."""
        added = tuple(
            ExclusionRule(f"extra-{i}", pattern)
            for i, pattern in enumerate(patterns, start=len(self.rules) + 1)
        )
        return ExclusionFilterSet(self.rules + added)

    def match(self, path: str) -> ExclusionRule | None:
        """First rule matching ``path``, or None."""
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    def excludes(self, path: str) -> bool:
        return self.match(path) is not None

    def engine_args(self) -> list[str]:
        """Suppression flags for llvm-cov, one per rule, in order."""
        return [f"-ignore-filename-regex={rule.pattern}" for rule in self.rules]

    def __iter__(self) -> Iterator[ExclusionRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)
