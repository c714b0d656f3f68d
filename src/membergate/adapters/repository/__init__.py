"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryRateStore, InMemorySignupStore
from .postgres import PostgresRateStore, PostgresSignupStore, run_migrations

__all__ = [
    "InMemoryRateStore",
    "InMemorySignupStore",
    "PostgresRateStore",
    "PostgresSignupStore",
    "run_migrations",
]
