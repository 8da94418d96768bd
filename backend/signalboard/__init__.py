"""SignalBoard - customer feedback signals and PM analytics backend."""

__version__ = "1.0.0"
