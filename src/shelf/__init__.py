"""shelf: personal book collection insights and reading paths."""

__version__ = "0.4.0"
