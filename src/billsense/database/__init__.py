"""Database layer for billsense application."""

from billsense.database.base import Database
from billsense.database.channel import NotificationChannel, Subscription
from billsense.database.factories import create_database, create_sqlite_database

__all__ = [
    "Database",
    "NotificationChannel",
    "Subscription",
    "create_database",
    "create_sqlite_database",
]
