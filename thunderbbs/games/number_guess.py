"""
ThunderBBS Number Guess

Guess a number between 1 and 100 in a limited number of attempts.
"""

import random
import re
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MIN_NUMBER = 1
MAX_NUMBER = 100
MAX_ATTEMPTS = 7

# Leading integer of a guess; trailing text is ignored
_GUESS_RE = re.compile(r"\s*([+-]?[0-9]+)")


@dataclass
class NumberGuessState:
    """State of one running game."""
    target: int
    attempts: int = 0
    max_attempts: int = MAX_ATTEMPTS
    name: str = "NUMBERGUESS"


class NumberGuessGame:
    """Number guessing game handler."""

    name = "NUMBERGUESS"
    title = "Number Guess"

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def start(self) -> tuple[NumberGuessState, str]:
        """Create a new game state and its welcome text."""
        state = NumberGuessState(target=self._rng.randint(MIN_NUMBER, MAX_NUMBER))
        logger.debug(f"Number guess started, target {state.target}")
        return state, (
            f"Welcome to Number Guess! I'm thinking of a number between "
            f"{MIN_NUMBER} and {MAX_NUMBER}. You have {state.max_attempts} attempts. "
            "Type your guess (e.g., 42)."
        )

    def handle(self, state: NumberGuessState, text: str) -> tuple[str, bool]:
        """
        Apply one guess.

        Returns:
            (response, finished) - finished is True on a win or when the
            attempts run out
        """
        match = _GUESS_RE.match(text)
        if match is None:
            return "That's not a valid number. Try again.", False
        guess = int(match.group(1))

        state.attempts += 1

        if guess == state.target:
            return (
                f"Correct! You guessed the number {state.target} "
                f"in {state.attempts} attempt(s).",
                True
            )

        if state.attempts >= state.max_attempts:
            return f"Sorry, you've run out of attempts! The number was {state.target}.", True

        remaining = state.max_attempts - state.attempts
        if guess < state.target:
            return f"Too low. Attempts left: {remaining}", False
        return f"Too high. Attempts left: {remaining}", False
