"""Hotel identity resolution across review platforms."""

__version__ = "0.1.0"
