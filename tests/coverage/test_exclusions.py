"""Tests for path exclusion rules."""

from __future__ import annotations

import pytest

from covpipe.config.constants import DEFAULT_EXCLUSION_RULES
from covpipe.coverage.exclusions import ExclusionFilterSet, ExclusionRule


class TestExclusionRule:
    def test_matches_anywhere_in_path(self) -> None:
        rule = ExclusionRule("generated", r"/generated/")
        assert rule.matches("/repo/src/generated/api.rs")
        assert not rule.matches("/repo/src/api.rs")

    def test_windows_separators_normalized(self) -> None:
        rule = ExclusionRule("dependency-cache", r"/\.cargo/(registry|git)/")
        assert rule.matches(r"C:\Users\me\.cargo\registry\src\serde-1.0\lib.rs")


class TestDefaultRules:
    @pytest.mark.parametrize(
        ("path", "rule_name"),
        [
            ("/home/u/.cargo/registry/src/index-1/serde-1.0.0/src/lib.rs", "dependency-cache"),
            ("/home/u/.cargo/git/checkouts/foo-abc/src/lib.rs", "dependency-cache"),
            ("/rustc/90b35a6239c3d8bdabc530a6a0816f7ff89a0aaf/library/core/src/fmt.rs",
             "rustc-sources"),
            ("/home/u/.rustup/toolchains/stable/lib/rustlib/src/rust/library/std/src/io.rs",
             "toolchain-sources"),
            ("/repo/src/main.rs", "entry-point"),
            ("src/main.rs", "entry-point"),
        ],
    )
    def test_default_rule_matches(self, path: str, rule_name: str) -> None:
        rule = ExclusionFilterSet.default().match(path)
        assert rule is not None
        assert rule.name == rule_name

    @pytest.mark.parametrize(
        "path",
        ["/repo/src/lib.rs", "/repo/src/bin/main_helper.rs", "/repo/crates/cli/src/args.rs"],
    )
    def test_project_sources_kept(self, path: str) -> None:
        assert not ExclusionFilterSet.default().excludes(path)


class TestExclusionFilterSet:
    def test_default_order_and_size(self) -> None:
        filters = ExclusionFilterSet.default()
        assert [r.name for r in filters] == [name for name, _ in DEFAULT_EXCLUSION_RULES]
        assert len(filters) == len(DEFAULT_EXCLUSION_RULES)

    def test_extra_patterns_appended(self) -> None:
        filters = ExclusionFilterSet.default([r"/generated/", r"_pb\.rs$"])

        names = [r.name for r in filters]
        n = len(DEFAULT_EXCLUSION_RULES)
        assert names[n:] == [f"extra-{n + 1}", f"extra-{n + 2}"]
        assert filters.excludes("/repo/src/proto/msg_pb.rs")

    def test_extend_returns_new_set(self) -> None:
        base = ExclusionFilterSet()
        extended = base.extend([r"x"])

        assert len(base) == 0
        assert len(extended) == 1

    def test_match_returns_first_rule(self) -> None:
        filters = ExclusionFilterSet(
            (ExclusionRule("first", r"\.rs$"), ExclusionRule("second", r"lib"))
        )
        rule = filters.match("/repo/src/lib.rs")
        assert rule is not None
        assert rule.name == "first"

    def test_engine_args_one_per_rule(self) -> None:
        filters = ExclusionFilterSet((ExclusionRule("a", "x"), ExclusionRule("b", "y")))
        assert filters.engine_args() == [
            "-ignore-filename-regex=x",
            "-ignore-filename-regex=y",
        ]

    def test_empty_set_excludes_nothing(self) -> None:
        assert not ExclusionFilterSet().excludes("/rustc/abc123/library/core/src/fmt.rs")
