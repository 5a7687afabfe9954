"""
Tests for ThunderBBS Password Hashing
"""

from thunderbbs.core.crypto import PasswordManager


class TestPasswordManager:
    """Tests for PasswordManager class."""

    def setup_method(self):
        """Set up test fixtures."""
        # Use minimal memory for faster tests
        self.crypto = PasswordManager(
            time_cost=1,
            memory_cost_kb=8192,  # 8MB for tests
            parallelism=1
        )

    def test_hash_password(self):
        """Test password hashing."""
        password = "test_password_123"
        hash1 = self.crypto.hash_password(password)
        hash2 = self.crypto.hash_password(password)

        # Hashes should be different (different salts)
        assert hash1 != hash2

        # Both should verify
        assert self.crypto.verify_password(password, hash1)
        assert self.crypto.verify_password(password, hash2)

    def test_hash_is_argon2id(self):
        """Stored hashes are Argon2id and never contain the plaintext."""
        hash_str = self.crypto.hash_password("hunter2")

        assert hash_str.startswith("$argon2id$")
        assert "hunter2" not in hash_str

    def test_verify_password_wrong(self):
        """Test password verification with wrong password."""
        hash_str = self.crypto.hash_password("correct_password")

        assert self.crypto.verify_password("correct_password", hash_str) is True
        assert self.crypto.verify_password("wrong_password", hash_str) is False

    def test_verify_garbage_hash(self):
        """A corrupt stored hash fails verification instead of raising."""
        assert self.crypto.verify_password("anything", "not-a-hash") is False
