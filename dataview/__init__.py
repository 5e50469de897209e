"""Tabular data explorer API over a PostgreSQL schema."""

__version__ = "0.1.0"
