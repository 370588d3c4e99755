"""cargo-kcov - collect Rust test coverage with kcov."""

__version__ = "0.5.0"
