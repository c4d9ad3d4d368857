"""Customer directory client: list customers and add new ones."""

__version__ = "1.0.0"
