"""covpipe - LLVM source-based coverage pipeline for cargo test suites."""

__version__ = "0.1.0"
