"""
Database module - Generic async MongoDB connection using Beanie ODM.

Usage:
    from common.database import MongoDB, set_main_database, get_main_database

    db = MongoDB()
    await db.connect(uri, database_name, models)
    set_main_database(db)

    # Access anywhere
    checkins = get_main_database().get_collection("checkins")
"""

from common.database.mongodb import (
    MongoDB,
    set_main_database,
    get_main_database,
)

__all__ = [
    "MongoDB",
    "set_main_database",
    "get_main_database",
]
