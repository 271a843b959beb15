#!/usr/bin/env python3
"""
Database Collection Setup Script

Creates the database, collections and indexes the API needs and prints
a document count per collection.

Usage:
    python ensure_collections.py
"""

import sys
import logging

from mathtutor.core.logging import setup_logging
from mathtutor.db.database import COLLECTIONS, INDEXES, DatabaseManager

setup_logging("INFO")
logger = logging.getLogger("mathtutor.ensure_collections")


def main():
    """Ensure all database collections exist."""
    print("🔧 Database Collection Setup")
    print("=" * 40)

    try:
        # Initializing the manager creates collections and indexes
        db = DatabaseManager().get_database()

        existing_names = [
            col['name'] for col in db.collections() if not col['name'].startswith('_')
        ]

        print(f"\n🎯 Required collections status:")
        for name in COLLECTIONS:
            if name in existing_names:
                count = db.collection(name).count()
                indexed = ", ".join("+".join(fields) for fields in INDEXES.get(name, []))
                print(f"   ✅ {name}: {count} documents (indexes: {indexed or 'none'})")
            else:
                print(f"   ❌ {name} - MISSING")

        print("\n" + "=" * 40)
        print("✅ Database setup complete!")

    except Exception as e:
        logger.error(f"❌ Error setting up database: {e}")
        print("\nTroubleshooting:")
        print("1. Make sure ArangoDB is running")
        print("2. Check ARANGO_URL / ARANGO_USERNAME / ARANGO_PASSWORD in .env")
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
