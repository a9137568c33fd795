"""wdkpack — build and package Windows driver crates."""

__version__ = "0.1.0"
