#!/usr/bin/env python3
"""
CLI script to create users for the local backend.
Usage: python scripts/create_user.py <email>
"""
import sys
import os
import getpass

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.auth import create_user, user_exists, validate_email, validate_password
from core.config import configure_logging, get_settings


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/create_user.py <email>")
        print("Example: python scripts/create_user.py student@example.com")
        sys.exit(1)

    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.backend != "local":
        print("Error: users are managed by Supabase when TRACKER_BACKEND=supabase")
        sys.exit(1)

    email = sys.argv[1]

    if not validate_email(email):
        print(f"Error: Invalid email format: {email}")
        sys.exit(1)

    if user_exists(email, settings.db_path):
        print(f"Error: User with email {email} already exists")
        sys.exit(1)

    print(f"Creating user: {email}")
    password = getpass.getpass("Enter password: ")
    confirm = getpass.getpass("Confirm password: ")

    if password != confirm:
        print("Error: Passwords do not match")
        sys.exit(1)

    is_valid, error = validate_password(password)
    if not is_valid:
        print(f"Error: {error}")
        sys.exit(1)

    user_id, error = create_user(email, password, settings.db_path)

    if user_id:
        print("✅ User created successfully!")
        print(f"   Email: {email}")
        print(f"   User ID: {user_id}")
        print(f"   Database: {settings.db_path}")
    else:
        print(f"❌ Failed to create user: {error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
