"""Storefront management CLI.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py grant-permissions EMAIL ADMIN  # Bootstrap an administrator
"""

import argparse
import json
import sys


def setup_database():
    from storefront.domain import init_storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront = init_storefront()
    created = setup_db(storefront)
    print(f"  schema ready on: {', '.join(created) or 'no SQL providers configured'}")
    print("Done.")


def drop_database():
    from storefront.domain import init_storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront = init_storefront()
    dropped = drop_db(storefront)
    print(f"  schema dropped on: {', '.join(dropped) or 'no SQL providers configured'}")
    print("Done.")


def grant_permissions(email, permissions):
    """Set a user's permissions without an acting administrator.

    This is how the first ADMIN is created.
    """
    from storefront.domain import init_storefront
    from storefront.identity.user.user import User

    storefront = init_storefront()
    with storefront.domain_context():
        repo = storefront.repository_for(User)
        user = repo.find_by_email(email)
        if user is None:
            print(f"No user with email {email}")
            return 1
        user.update_permissions(permissions)
        repo.add(user)
        print(f"{user.email}: {', '.join(json.loads(user.permissions))}")
    return 0


def main():
    from storefront.utils.logging import configure_logging

    configure_logging()

    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    grant_parser = subparsers.add_parser("grant-permissions", help="Replace a user's permissions")
    grant_parser.add_argument("email")
    grant_parser.add_argument("permissions", nargs="+", help="e.g. ADMIN USER PERMISSIONUPDATE")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "grant-permissions":
        sys.exit(grant_permissions(args.email, args.permissions))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
