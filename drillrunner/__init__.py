"""Compile, run, verify and watch small Rust exercises from the terminal."""

__version__ = "5.5.1"
__all__ = ["__version__"]