"""ThunderBBS Games Module - mini-games played inside a session."""

from .router import GameRouter
from .number_guess import NumberGuessGame

__all__ = ["GameRouter", "NumberGuessGame"]
