"""debtdesk: dual-source record repository for a debt-collection back office."""

__version__ = "1.0.0"
