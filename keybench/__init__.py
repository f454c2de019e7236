"""PostgreSQL benchmark of serial integer keys versus UUID keys."""

__version__ = "0.1.0"
