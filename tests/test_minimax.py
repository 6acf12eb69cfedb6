import pytest

from mastermind.book import OpeningBook
from mastermind.game import Code, Feedback, Game
from mastermind.minimax import MinimaxSolver, best_score, select_guesses
from mastermind.space import all_possible_codes


def _assert_history_shrinks(solver):
    previous = None
    for record in solver.history:
        assert record.remaining_after <= record.remaining_before
        if record.remaining_before > 2:
            assert record.remaining_after < record.remaining_before, (
                f"S did not shrink after {record.guess}: {record.remaining_before}"
            )
        assert sum(record.hits.values()) == record.remaining_before
        assert record.hits[record.feedback] == record.remaining_after
        if previous is not None:
            assert record.remaining_before == previous.remaining_after
        previous = record


def test_worst_case_secret():
    game = Game(4, 6, secret=Code.from_string("2521"))
    solver = MinimaxSolver(game)

    winner = solver.solve()

    assert game.is_winner(winner)
    assert game.turns_taken <= 5, f"worst case took {game.turns_taken} moves"
    _assert_history_shrinks(solver)


def test_sampled_secrets_standard_game():
    """A spread of 4x6 secrets, each solved in at most 5 guesses."""
    _, codes = all_possible_codes(4, 6)
    for secret in codes[::97]:
        game = Game(4, 6, secret=secret)
        solver = MinimaxSolver(game)
        winner = solver.solve()

        assert winner == secret, f"solution for {secret} incorrect, got {winner}"
        assert game.turns_taken <= 5, f"{secret} took {game.turns_taken} moves"
        assert solver.rounds == game.turns_taken - 1
        _assert_history_shrinks(solver)


def test_every_secret_small_game():
    book = OpeningBook(seed={})
    _, codes = all_possible_codes(3, 3)
    for secret in codes:
        game = Game(3, 3, secret=secret)
        solver = MinimaxSolver(game, book=book)
        assert solver.solve() == secret
        _assert_history_shrinks(solver)
    assert len(book) == 1


def test_process_backend_solves():
    book = OpeningBook(seed={})
    game = Game(3, 4, secret=(3, 0, 2))
    solver = MinimaxSolver(game, book=book, workers=2, backend="process", chunk_size=8)
    assert solver.solve() == (3, 0, 2)


def test_solve_can_run_twice():
    book = OpeningBook(seed={})
    game = Game(3, 4, secret=(1, 1, 2))
    solver = MinimaxSolver(game, book=book)
    first = solver.solve()
    turns = game.turns_taken
    game.reset()
    assert solver.solve() == first
    assert game.turns_taken == turns


def test_next_guess_shortcut():
    book = OpeningBook(seed={})
    solver = MinimaxSolver(Game(2, 3, secret=(0, 0)), book=book)
    S = {"21": Code((2, 1)), "12": Code((1, 2))}
    _, P = all_possible_codes(2, 3)
    assert solver.next_guess(S, P) == (1, 2)


def test_selection_helpers():
    a, b, c = Code((0, 1)), Code((1, 0)), Code((2, 2))
    scores = {3: [a], 1: [b, c], 2: [a, c]}
    assert best_score(scores) == [b, c]

    S = {"22": c}
    assert select_guesses(S, [a, b, c]) == [c]
    assert select_guesses({}, [a, b]) == [a, b]


def test_best_guess_of_set_prefers_smaller_code_on_ties():
    book = OpeningBook(seed={})
    solver = MinimaxSolver(Game(2, 2, secret=(0, 0)), book=book)
    S, P = all_possible_codes(2, 2)
    # 01 and 10 both split the four codes into buckets of at most 2
    assert solver.best_guess_of_set(S, [Code((1, 0)), Code((0, 1))]) == (0, 1)


class _FailingGame(Game):
    def scored_guess(self, code):
        raise ValueError("oracle failure")


class _LyingGame(Game):
    def scored_guess(self, code):
        self.turns_taken += 1
        return Feedback(0, 0)


def test_oracle_errors_propagate():
    book = OpeningBook(seed={})
    solver = MinimaxSolver(_FailingGame(3, 3, secret=(0, 0, 0)), book=book)
    with pytest.raises(ValueError, match="oracle failure"):
        solver.solve()


def test_inconsistent_feedback_is_reported():
    book = OpeningBook(seed={})
    solver = MinimaxSolver(_LyingGame(2, 2, secret=(0, 0)), book=book)
    with pytest.raises(RuntimeError, match="no code is consistent"):
        solver.solve()


@pytest.mark.slow
def test_all_possible_secrets_standard_game():
    """Exhaustive 4x6 sweep: every secret in at most 5 guesses."""
    _, codes = all_possible_codes(4, 6)
    worst_moves = 0
    worst_code = None
    for secret in codes:
        game = Game(4, 6, secret=secret)
        winner = MinimaxSolver(game).solve()
        assert game.is_winner(winner), f"solution for {secret} incorrect, got {winner}"
        if game.turns_taken > worst_moves:
            worst_moves = game.turns_taken
            worst_code = secret
    assert worst_moves <= 5, f"worst case {worst_code} took {worst_moves} moves"
