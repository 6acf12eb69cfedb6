from .book import OPENING_BOOK, OpeningBook
from .config import CONFIG
from .game import (
    Code,
    Feedback,
    Game,
    GameSize,
    check_code,
    game_size,
    new_game,
    random_code,
    score_code,
)
from .genetic import Citizen, GeneticSolver
from .minimax import MinimaxSolver, RoundRecord
from .parallel import Limiter
from .space import all_possible_codes, possible_results

__all__ = [
    "CONFIG",
    "Citizen",
    "Code",
    "Feedback",
    "Game",
    "GameSize",
    "GeneticSolver",
    "Limiter",
    "MinimaxSolver",
    "OPENING_BOOK",
    "OpeningBook",
    "RoundRecord",
    "all_possible_codes",
    "check_code",
    "game_size",
    "new_game",
    "possible_results",
    "random_code",
    "score_code",
]
