"""unidb - MySQL, PostgreSQL, Redis and SQLite operations as agent tools."""

__version__ = "1.0.0"
