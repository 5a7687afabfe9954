"""
ThunderBBS User Administration

Offline account management for the `user` subcommand. Promoting an
account is the only way to create a sysop.
"""

import logging

from ..db.connection import Database
from ..db.models import Role
from ..db.users import UserRepository

logger = logging.getLogger(__name__)


def run_user(args) -> int:
    """
    Run user administration command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    from ..config import load_config

    config = load_config(args.config)
    db = Database(config.database.path)
    db.initialize()

    try:
        if getattr(args, 'list', False):
            return list_users(db)

        if getattr(args, 'promote', None):
            return change_role(db, args.promote, Role.SYSOP)

        if getattr(args, 'demote', None):
            return change_role(db, args.demote, Role.USER)

        print("Nothing to do. Use --list, --promote NAME or --demote NAME.")
        return 1
    finally:
        db.close()


def list_users(db: Database) -> int:
    """Print every account with its role."""
    users = UserRepository(db).list_users(limit=db.count_users())

    if not users:
        print("No registered users.")
        return 0

    print(f"{'ID':>5}  {'Username':<20} {'Role':<6} Registered")
    for user in users:
        print(f"{user.id:>5}  {user.username:<20} {user.role.value:<6} {user.registration_date}")
    return 0


def change_role(db: Database, username: str, role: Role) -> int:
    """Set an account's role."""
    if not UserRepository(db).set_role(username, role):
        print(f"User {username} not found.")
        return 1

    logger.info(f"Role of {username} set to {role.value}")
    print(f"{username} is now {role.value}.")
    return 0
