#!/usr/bin/env python3
"""
Copy the demo dataset into a local user's account.
Usage: python scripts/seed_demo.py <email>
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.database import LocalProvider
from backend.dates import today
from backend.fixtures import seed_user
from core.auth import get_user_id
from core.config import configure_logging, get_settings


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/seed_demo.py <email>")
        sys.exit(1)

    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.backend != "local":
        print("Error: seeding is only supported for TRACKER_BACKEND=local")
        sys.exit(1)

    email = sys.argv[1]
    user_id = get_user_id(email, settings.db_path)
    if user_id is None:
        print(f"Error: No user with email {email}; run scripts/create_user.py first")
        sys.exit(1)

    provider = LocalProvider(settings.db_path, settings.storage_dir)
    counts = seed_user(provider, user_id, today(settings.timezone))

    print(f"✅ Seeded demo data for {email}")
    for table, count in counts.items():
        print(f"   {table}: {count}")


if __name__ == "__main__":
    main()
