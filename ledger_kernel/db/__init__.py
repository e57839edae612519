"""Database layer: declarative base, engine, column types."""
