"""intellidiff: structured git diffs between two references."""

__version__ = "0.1.0"
