"""
ThunderBBS Data Models

Dataclasses representing database entities.
"""

from dataclasses import dataclass
from typing import Optional
from enum import Enum


class Role(Enum):
    """Account role enumeration."""
    USER = "user"
    SYSOP = "sysop"


@dataclass
class User:
    """Registered BBS account."""
    id: Optional[int] = None
    username: str = ""
    password_hash: str = ""
    registration_date: str = ""
    role: Role = Role.USER

    @property
    def is_sysop(self) -> bool:
        return self.role == Role.SYSOP


@dataclass
class Board:
    """Public message board."""
    id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None


@dataclass
class Post:
    """Public post on a board."""
    id: Optional[int] = None
    board_id: int = 0
    user_id: int = 0
    body: str = ""
    timestamp: str = ""
    username: Optional[str] = None  # Author name, filled by joined queries


@dataclass
class PrivateMessage:
    """Private mail between two accounts."""
    id: Optional[int] = None
    sender_id: int = 0
    recipient_id: int = 0
    subject: str = ""
    body: str = ""
    timestamp: str = ""
    is_read: bool = False
    sender_username: Optional[str] = None


@dataclass
class FileArea:
    """Named partition of file listings."""
    id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None


@dataclass
class FileListing:
    """File metadata entry (no file bytes are stored)."""
    id: Optional[int] = None
    area_id: int = 0
    filename: str = ""
    description: Optional[str] = None
    uploader_user_id: int = 0
    upload_date: str = ""
    download_count: int = 0
    uploader_username: Optional[str] = None


@dataclass
class UserPreference:
    """Per-account display colors. None means "use the default"."""
    user_id: int = 0
    color_prompt: Optional[str] = None
    color_username_output: Optional[str] = None
    color_timestamp_output: Optional[str] = None
