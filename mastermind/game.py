"""
game.py

Codes, feedback and the game / oracle object the solvers play against.

- A Code is an immutable tuple of color indices; str(code) is its canonical
  form ("0011") and doubles as a dictionary key.
- Feedback is (exact, color_only): pegs of the right color in the right
  position, and pegs of a right color in the wrong position.
- Game holds the secret, counts turns and scores guesses.
"""

import random
import time
from typing import Iterable, NamedTuple, Optional, Sequence

from .config import CONFIG

MAX_POSITIONS = CONFIG["max_positions"]
MAX_COLORS = CONFIG["max_colors"]


# =========================
# Core value types
# =========================


class Code(tuple):
    """Ordered sequence of color indices."""

    __slots__ = ()

    def __new__(cls, values: Iterable[int] = ()):
        return super().__new__(cls, values)

    @classmethod
    def from_string(cls, text: str) -> "Code":
        if not text.isdigit():
            raise ValueError(f"code must contain only digits, got {text!r}")
        return cls(int(ch) for ch in text)

    def __str__(self) -> str:
        return "".join(str(v) for v in self)

    def __repr__(self) -> str:
        return f"Code('{self}')"


class Feedback(NamedTuple):
    exact: int
    color_only: int

    def __str__(self) -> str:
        return f"{self.exact}-{self.color_only}"


class GameSize(NamedTuple):
    positions: int
    colors: int


def game_size(positions: int, colors: int) -> GameSize:
    """Build a GameSize, rejecting sizes outside the supported bounds."""
    if not 1 <= positions <= MAX_POSITIONS:
        raise ValueError(f"positions must be in 1-{MAX_POSITIONS}, got {positions}")
    if not 1 <= colors <= MAX_COLORS:
        raise ValueError(f"colors must be in 1-{MAX_COLORS}, got {colors}")
    return GameSize(positions, colors)


# =========================
# Feedback oracle
# =========================


def score_code(guess: Sequence[int], actual: Sequence[int], colors: int) -> Feedback:
    """
    Feedback for `guess` against `actual`, without validation.

    Used in the solvers' inner loops where both codes come from the
    hypothesis space generator and are known to be well formed.
    """
    exact = 0
    for g, a in zip(guess, actual):
        if g == a:
            exact += 1

    # min(count in guess, count in actual) summed over colors is
    # exact + color_only; subtract exact to get the color-only pegs.
    common = 0
    for color in range(colors):
        x = guess.count(color)
        if x:
            y = actual.count(color)
            common += x if x < y else y

    return Feedback(exact, common - exact)


def check_code(guess: Sequence[int], actual: Sequence[int], colors: int) -> Feedback:
    """
    Score `guess` against `actual` for a game with `colors` colors.

    Raises ValueError if the codes differ in length or use a color outside
    [0, colors).
    """
    if len(guess) != len(actual):
        raise ValueError("codes are not equal length")
    for code in (guess, actual):
        for v in code:
            if not 0 <= v < colors:
                raise ValueError(f"code must use only colors 0 - {colors - 1}, got {v}")
    return score_code(guess, actual, colors)


def random_code(positions: int, colors: int, rng=None) -> Code:
    rng = rng if rng is not None else random
    return Code(rng.randrange(colors) for _ in range(positions))


# =========================
# Game / oracle
# =========================


class Game:
    """
    A single game of Mastermind with a hidden secret.

    The solvers only use positions/colors, empty_code(), random_code(),
    scored_guess(), is_win() and reset().
    """

    def __init__(
        self,
        positions: int = CONFIG["positions"],
        colors: int = CONFIG["colors"],
        secret: Optional[Sequence[int]] = None,
        rng=None,
        verbose: bool = CONFIG["debug"],
    ):
        self.size = game_size(positions, colors)
        self.rng = rng if rng is not None else random
        self.verbose = verbose
        self.turns_taken = 0
        self.solve_time: Optional[float] = None
        self._start_time = time.perf_counter()
        if secret is None:
            self._secret = self.random_code()
        else:
            self.set_secret(secret)

    @property
    def positions(self) -> int:
        return self.size.positions

    @property
    def colors(self) -> int:
        return self.size.colors

    def reset(self) -> None:
        self.turns_taken = 0
        self.solve_time = None
        self._start_time = time.perf_counter()

    def set_secret(self, secret: Sequence[int]) -> None:
        self._secret = self._validated(Code(secret))

    def empty_code(self) -> Code:
        return Code([0] * self.positions)

    def random_code(self) -> Code:
        return random_code(self.positions, self.colors, self.rng)

    def code(self, text: str) -> Code:
        """Parse a code string such as "0123" for this game's size."""
        if len(text) != self.positions:
            raise ValueError(f"code must have {self.positions} positions")
        return self._validated(Code.from_string(text))

    def _validated(self, code: Code) -> Code:
        if len(code) != self.positions:
            raise ValueError(f"code must have {self.positions} positions")
        for v in code:
            if not 0 <= v < self.colors:
                raise ValueError(f"code must use only colors 0 - {self.colors - 1}")
        return code

    def is_win(self, feedback: Feedback) -> bool:
        return feedback.exact == self.positions and feedback.color_only == 0

    def is_winner(self, code: Sequence[int]) -> bool:
        return code is not None and tuple(code) == tuple(self._secret)

    def scored_guess(self, code: Sequence[int]) -> Feedback:
        """Score a guess against the secret. Every call counts as a turn."""
        self.turns_taken += 1
        feedback = check_code(code, self._secret, self.colors)

        if self.is_win(feedback):
            self.solve_time = time.perf_counter() - self._start_time
            if self.verbose:
                print(
                    f"[game] {Code(code)} is a winner; solved in "
                    f"{self.turns_taken} moves ({self.solve_time:.3f}s)"
                )
        elif self.verbose:
            print(
                f"[game] move {self.turns_taken}: {Code(code)} -> "
                f"{feedback.exact} correct, {feedback.color_only} out of position"
            )
        return feedback

    def guess_string(self, text: str) -> Feedback:
        return self.scored_guess(self.code(text))


def new_game(secret: Optional[Sequence[int]] = None, rng=None) -> Game:
    """Standard 4-position, 6-color game."""
    return Game(CONFIG["positions"], CONFIG["colors"], secret=secret, rng=rng)
