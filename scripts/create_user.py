#!/usr/bin/env python3
"""Script to create users in the database."""

import sys
from pathlib import Path

# Add parent directory to path so we can import prompthive modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from prompthive.core.database import SessionLocal
from prompthive.core.exceptions import PromptHiveError
from prompthive.core.permissions import ROLE_USER, ROLES
from prompthive.models.user import User
from prompthive.services import user_service


def create_user(
    username: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
) -> User:
    """Create a new user in the database."""
    db = SessionLocal()
    try:
        user = user_service.create_user(db, username, email, password, role)
    except PromptHiveError as e:
        db.rollback()
        print(f"Error creating user: {e.message}")
        sys.exit(1)
    finally:
        db.close()

    print("User created successfully!")
    print(f"   Username: {user.username}")
    print(f"   Email: {user.email}")
    print(f"   Role: {user.role}")
    return user


def main():
    """Main entry point for the script."""
    if len(sys.argv) < 4:
        print("Usage: python create_user.py <username> <email> <password> [role]")
        print("\nExample:")
        print("  python create_user.py admin admin@example.com s3cret! ADMIN")
        print("  python create_user.py guest guest@example.com guest GUEST")
        print(f"\nRoles: {', '.join(ROLES)}")
        sys.exit(1)

    username = sys.argv[1]
    email = sys.argv[2]
    password = sys.argv[3]
    role = sys.argv[4].upper() if len(sys.argv) > 4 else ROLE_USER

    if role not in ROLES:
        print(f"Invalid role '{role}'. Must be: {', '.join(ROLES)}")
        sys.exit(1)

    create_user(
        username=username,
        email=email,
        password=password,
        role=role,
    )


if __name__ == "__main__":
    main()
