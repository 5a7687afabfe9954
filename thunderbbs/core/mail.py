"""
ThunderBBS Private Mail

Compose, list, read and delete private messages between accounts.
"""

import logging
from typing import Optional, TYPE_CHECKING

from ..db.models import PrivateMessage
from ..db.messages import PrivateMessageRepository
from ..db.users import UserRepository

if TYPE_CHECKING:
    from .bbs import ThunderBBS

logger = logging.getLogger(__name__)


class MailService:
    """
    Private mail service for ThunderBBS.

    A message is visible to, and deletable by, its recipient only.
    """

    def __init__(self, bbs: "ThunderBBS"):
        self.bbs = bbs
        self.users = UserRepository(bbs.db)
        self.messages = PrivateMessageRepository(bbs.db)

    def compose_mail(
        self,
        sender_user_id: int,
        recipient_username: str,
        subject: str,
        body: str = ""
    ) -> tuple[Optional[PrivateMessage], str]:
        """
        Store an unread message for a recipient.

        Returns:
            (PrivateMessage, "") on success
            (None, error_message) on failure
        """
        recipient = self.users.get_user_by_username(recipient_username)
        if not recipient:
            return None, f"Recipient user '{recipient_username}' not found."

        message = self.messages.create_message(
            sender_id=sender_user_id,
            recipient_id=recipient.id,
            subject=subject,
            body=body
        )

        logger.info(f"Mail {message.id}: user {sender_user_id} -> {recipient.username}")
        return message, ""

    def list_mail(self, user_id: int) -> list[PrivateMessage]:
        """All received mail, newest first."""
        return self.messages.get_user_mail(user_id)

    def unread_count(self, user_id: int) -> int:
        return self.messages.count_unread_mail(user_id)

    def read_mail(self, user_id: int, message_id: int) -> tuple[Optional[PrivateMessage], str]:
        """
        Fetch a message and mark it read.

        Reading an already-read message is not an error.
        """
        message = self.messages.get_message_for_recipient(message_id, user_id)
        if not message:
            return None, "Message not found or access denied."

        if not message.is_read:
            self.messages.mark_as_read(message.id)
            message.is_read = True

        return message, ""

    def delete_mail(self, user_id: int, message_id: int) -> tuple[bool, str]:
        """Delete a message the user received."""
        if not self.messages.delete_for_recipient(message_id, user_id):
            return False, "Message not found or access denied."
        return True, ""
