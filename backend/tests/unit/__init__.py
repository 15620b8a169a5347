"""
Unit Tests

Unit tests run in isolation without external dependencies.
PostgreSQL is replaced by the in-memory gateway or an in-memory SQLite
database.
"""
