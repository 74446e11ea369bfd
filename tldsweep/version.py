"""Package version for tldsweep."""

__version__ = "1.0.0"
