"""Configuration constants.

Values here are file-format and tool-protocol facts that should NOT be
user-configurable. For configurable values, see models.py.
"""

import re

# =============================================================================
# Raw profile naming
# =============================================================================
# %p expands to the process id and %m to the binary's module signature, so
# every test process writes its own file and no two writers share a path.

RAW_PROFILE_TEMPLATE = "cov-%p-%m.raw"
"""Value given to LLVM_PROFILE_FILE (joined onto the profile directory)."""

RAW_PROFILE_GLOB = "cov-*-*.raw"
"""Glob matching files produced by RAW_PROFILE_TEMPLATE."""

RAW_PROFILE_RE = re.compile(r"^cov-(?P<pid>\d+)-(?P<module>[^.]+)\.raw$")
"""Parses pid and module id out of a raw profile file name."""

# =============================================================================
# Merged profile and report layout
# =============================================================================

MERGED_PROFILE_NAME = "coverage.profdata"
"""File name of the merged indexed profile inside the output directory."""

HTML_DIR_NAME = "html"
"""Subdirectory of the output directory holding the rendered document."""

HTML_INDEX_NAME = "index.html"

# =============================================================================
# Build discovery
# =============================================================================

DEBUG_SYMBOL_BUNDLE_RE = re.compile(r"\.dSYM(/|$)")
"""Debug-symbol bundles listed next to test binaries; not analyzable."""

INSTRUMENT_RUSTFLAG = "-C instrument-coverage"

# =============================================================================
# Coverage engine
# =============================================================================

CODE_REGION_KIND = 0
"""llvm-cov export region kind for executable code (others: expansion,
skipped, gap, branch)."""

EXPORT_TYPE = "llvm.coverage.json.export"

FORMAT_MISMATCH_RE = re.compile(
    r"(unsupported|incompatible|unknown)\b[^\n]*\bversion|version mismatch",
    re.IGNORECASE,
)
"""Engine stderr patterns meaning the profile and binaries disagree on format."""

# =============================================================================
# Default exclusion rules: (name, regex)
# =============================================================================

DEFAULT_EXCLUSION_RULES: tuple[tuple[str, str], ...] = (
    ("dependency-cache", r"/\.cargo/(registry|git)/"),
    ("rustc-sources", r"/rustc/[0-9a-f]+/"),
    ("toolchain-sources", r"/\.rustup/toolchains/"),
    ("entry-point", r"(^|/)src/main\.rs$"),
)
