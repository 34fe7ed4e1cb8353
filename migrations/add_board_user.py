"""
Create a user that can log in to the board.

Usage:
    python migrations/add_board_user.py --username alice [--admin] [--read-only]

The password is prompted for. Existing usernames are left untouched.
"""

import argparse
import getpass
import os
import sys

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Add parent directory to path to import kanban modules
sys.path.insert(0, ROOT_DIR)


def add_board_user(username: str, password: str, is_admin: bool = False, can_reorder: bool = True) -> bool:
    from kanban import create_app
    from kanban.auth.utils import hash_password
    from kanban.models import User, db

    app = create_app()

    with app.app_context():
        db.create_all()

        if User.query.filter_by(username=username).first():
            print(f"⚠ User '{username}' already exists. Skipping.")
            return False

        try:
            db.session.add(User(
                username=username,
                password_hash=hash_password(password),
                is_admin=is_admin,
                can_reorder=can_reorder,
                is_active=True,
            ))
            db.session.commit()
        except Exception as e:
            print(f"✗ Error creating user '{username}': {e}")
            db.session.rollback()
            return False

        print(f"✓ Created user '{username}' (admin: {is_admin}, can reorder: {can_reorder})")
        return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a board user.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--admin", action="store_true", help="Mark the user as admin.")
    parser.add_argument("--read-only", action="store_true", help="User may view the board but not drag cards.")
    args = parser.parse_args()

    try:
        password = getpass.getpass("Password: ").strip()
        if not password:
            print("✗ Password cannot be empty.")
            sys.exit(1)
        success = add_board_user(args.username, password, is_admin=args.admin, can_reorder=not args.read_only)
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\n✗ Cancelled by user.")
        sys.exit(1)
