"""
Tests for ThunderBBS Private Mail
"""

from thunderbbs.config import Config, CryptoConfig
from thunderbbs.core.bbs import ThunderBBS
from thunderbbs.core.sessions import ConnectionKind


def make_bbs() -> ThunderBBS:
    """BBS on an in-memory database with cheap Argon2 settings."""
    config = Config()
    config.database.path = ":memory:"
    config.crypto = CryptoConfig(argon2_time_cost=1, argon2_memory_kb=8192, argon2_parallelism=1)
    bbs = ThunderBBS(config)
    bbs.setup()
    return bbs


class MailTestBase:
    """Two logged-in users, alice and bob."""

    def setup_method(self):
        self.bbs = make_bbs()
        self.alice = self.bbs.open_session(ConnectionKind.WEB)
        self.bob = self.bbs.open_session(ConnectionKind.WEB)

        self.bbs.process_input(self.alice, "REGISTER alice pw1")
        self.bbs.process_input(self.alice, "LOGIN alice pw1")
        self.bbs.process_input(self.bob, "REGISTER bob pw2")
        self.bbs.process_input(self.bob, "LOGIN bob pw2")

    def _only_mail(self):
        return self.bbs.db.fetchone("SELECT * FROM private_messages")


class TestMailCompose(MailTestBase):
    """Tests for SENDMAIL."""

    def test_send_with_body(self):
        response = self.bbs.process_input(self.alice, "SENDMAIL bob Lunch plans /// See you at noon")
        assert response == "Message sent successfully."

        row = self._only_mail()
        assert row["subject"] == "Lunch plans"
        assert row["body"] == "See you at noon"
        assert row["is_read"] == 0

    def test_send_without_spaces_around_separator(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Lunch///noon")
        row = self._only_mail()
        assert row["subject"] == "Lunch"
        assert row["body"] == "noon"

    def test_send_without_separator(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Just a subject")
        row = self._only_mail()
        assert row["subject"] == "Just a subject"
        assert row["body"] == ""

    def test_send_usage(self):
        usage = "Usage: SENDMAIL <recipient_username> <subject> /// [optional_message_body]"
        assert self.bbs.process_input(self.alice, "SENDMAIL") == usage
        assert self.bbs.process_input(self.alice, "SENDMAIL bob") == usage
        assert self.bbs.process_input(self.alice, "SENDMAIL bob /// body only") == usage
        assert self._only_mail() is None

    def test_unknown_recipient(self):
        response = self.bbs.process_input(self.alice, "SENDMAIL carol Hi /// there")
        assert response == "Recipient user 'carol' not found."

    def test_requires_login(self):
        guest = self.bbs.open_session(ConnectionKind.WEB)
        response = self.bbs.process_input(guest, "SENDMAIL bob Hi /// there")
        assert response.startswith("You must be logged in to use the SENDMAIL command.")


class TestMailRead(MailTestBase):
    """Tests for LISTMAIL and READMAIL."""

    def test_empty_mailbox(self):
        assert self.bbs.process_input(self.bob, "LISTMAIL") == "You have no private messages."

    def test_listmail_marks_unread(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob First /// a")
        self.bbs.process_input(self.alice, "SENDMAIL bob Second /// b")
        self.bbs.process_input(self.bob, "READMAIL 1")

        lines = self.bbs.process_input(self.bob, "LISTMAIL").splitlines()
        assert lines[0] == "Your Private Messages:"
        # Newest first
        assert lines[1].startswith("* 2: From: alice Sub: Second (")
        assert lines[2].startswith("  1: From: alice Sub: First (")

    def test_readmail(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Lunch /// noon")
        response = self.bbs.process_input(self.bob, "READMAIL 1")

        lines = response.splitlines()
        assert lines[0] == "From: alice"
        assert lines[1] == "Subject: Lunch"
        assert lines[2].startswith("Date: ")
        assert lines[3] == ""
        assert lines[4] == "noon"
        assert self._only_mail()["is_read"] == 1

    def test_readmail_twice_is_idempotent(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Lunch /// noon")
        first = self.bbs.process_input(self.bob, "READMAIL 1")
        second = self.bbs.process_input(self.bob, "READMAIL 1")

        assert first == second
        assert self._only_mail()["is_read"] == 1

    def test_sender_cannot_read(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Lunch /// noon")
        response = self.bbs.process_input(self.alice, "READMAIL 1")
        assert response == "Message not found or access denied."
        assert self._only_mail()["is_read"] == 0

    def test_readmail_usage(self):
        assert self.bbs.process_input(self.bob, "READMAIL abc") == "Usage: READMAIL <message_id>"
        assert self.bbs.process_input(self.bob, "READMAIL") == "Usage: READMAIL <message_id>"

    def test_readmail_rejects_unstorable_ids(self):
        for line in ("READMAIL 99999999999999999999", "READMAIL ²"):
            assert self.bbs.process_input(self.bob, line) == "Usage: READMAIL <message_id>"


class TestMailDelete(MailTestBase):
    """Tests for DELETEMAIL."""

    def test_delete_as_recipient(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Lunch /// noon")
        assert self.bbs.process_input(self.bob, "DELETEMAIL 1") == "Message deleted."
        assert self._only_mail() is None

    def test_delete_as_sender_denied(self):
        self.bbs.process_input(self.alice, "SENDMAIL bob Lunch /// noon")
        response = self.bbs.process_input(self.alice, "DELETEMAIL 1")
        assert response == "Message not found or access denied."
        assert self._only_mail() is not None

    def test_delete_missing(self):
        assert self.bbs.process_input(self.bob, "DELETEMAIL 42") == "Message not found or access denied."

    def test_delete_usage(self):
        assert self.bbs.process_input(self.bob, "DELETEMAIL x") == "Usage: DELETEMAIL <message_id>"
        response = self.bbs.process_input(self.bob, "DELETEMAIL 99999999999999999999")
        assert response == "Usage: DELETEMAIL <message_id>"
