"""Keep local mirrors of every repository in one or more organizations."""

__version__ = "0.3.0"
