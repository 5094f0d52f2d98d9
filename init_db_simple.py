#!/usr/bin/env python3
"""Simple database initialization script.

Creates all database tables using SQLAlchemy models.
Run this from the repository root:
    python init_db_simple.py
"""

import sys
from pathlib import Path

# Add repository root to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent))

from apps.api.database import Base, engine
from apps.api.models import Customer, Order, Segment, SegmentSnapshot  # noqa: F401  (registers tables)

print("🔧 Initializing back-office segments database...")
print(f"📍 Database URL: {engine.url}")

# Create all tables
try:
    print("\n📋 Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("✅ Database tables created successfully!")

    print("\n📊 Created tables:")
    for table_name in Base.metadata.tables.keys():
        print(f"  - {table_name}")

    print("\n🎉 Database initialization complete!")
    print("\nYou can now:")
    print("  1. Seed demo customers (python -m apps.api.scripts.seed_demo)")
    print("  2. Create segments via POST /segments")
    print("  3. Reconcile counts via POST /segments/sync")

except Exception as e:
    print(f"\n❌ Error creating tables: {e}")
    sys.exit(1)
