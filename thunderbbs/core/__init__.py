"""ThunderBBS Core Module - Main BBS class, sessions, and services."""

from .bbs import ThunderBBS
from .crypto import PasswordManager
from .sessions import Session, SessionStore, ConnectionKind
from .broadcast import BroadcastQueue
from .mail import MailService
from .boards import BoardService
from .files import FileService

__all__ = [
    "ThunderBBS",
    "PasswordManager",
    "Session",
    "SessionStore",
    "ConnectionKind",
    "BroadcastQueue",
    "MailService",
    "BoardService",
    "FileService",
]
