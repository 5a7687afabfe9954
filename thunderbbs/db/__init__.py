"""ThunderBBS Database Module - SQLite database operations."""

from .connection import Database
from .models import User, Role, Board, Post, PrivateMessage, FileArea, FileListing, UserPreference

__all__ = [
    "Database",
    "User",
    "Role",
    "Board",
    "Post",
    "PrivateMessage",
    "FileArea",
    "FileListing",
    "UserPreference",
]
