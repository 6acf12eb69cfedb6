import pytest

from mastermind.game import Code, Feedback, score_code
from mastermind.space import (
    all_possible_codes,
    count_hits,
    empty_hit_map,
    max_hits,
    possible_results,
    select_with_result,
    sorted_codes,
)


@pytest.mark.parametrize(
    "positions,colors",
    [(1, 1), (1, 5), (2, 3), (3, 4), (4, 6), (2, 10), (5, 2)],
)
def test_all_possible_codes(positions, colors):
    """colors**positions distinct, valid codes, keyed by their string form."""
    code_set, code_list = all_possible_codes(positions, colors)

    expected = colors ** positions
    assert len(code_set) == expected, f"should be {expected} ({colors}^{positions}) codes"
    assert len(code_list) == expected
    assert len(set(code_list)) == expected, "duplicate codes generated"

    for key, code in code_set.items():
        assert key == str(code), f"map entry {key} contains code {code}"
        assert len(code) == positions
        assert all(0 <= v < colors for v in code), f"invalid code {code}"


def test_code_list_is_lexicographic():
    _, code_list = all_possible_codes(3, 4)
    keys = [str(c) for c in code_list]
    assert keys == sorted(keys)
    assert code_list[0] == (0, 0, 0)
    assert code_list[-1] == (3, 3, 3)
    assert code_list[6] == (0, 1, 2)


def test_possible_results():
    results = possible_results(4)
    assert len(results) == 15
    assert results[0] == Feedback(0, 4)
    assert results[-1] == Feedback(4, 0)
    assert all(r.exact + r.color_only <= 4 for r in results)
    assert set(empty_hit_map(4)) == set(results)
    assert all(v == 0 for v in empty_hit_map(4).values())


def test_select_with_result_prunes_and_tallies():
    S, _ = all_possible_codes(4, 6)
    guess = Code((0, 0, 1, 1))
    secret = Code((5, 4, 3, 2))
    result = score_code(guess, secret, 6)

    kept, hits = select_with_result(S, guess, result, 6, 4)

    assert str(secret) in kept
    assert sum(hits.values()) == len(S)
    assert len(kept) == hits[result]
    for s in kept.values():
        assert score_code(guess, s, 6) == result


def test_count_hits_matches_select_tally():
    S, _ = all_possible_codes(3, 4)
    guess = Code((0, 1, 2))
    _, hits = select_with_result(S, guess, Feedback(3, 0), 4, 3)
    assert count_hits(S, guess, 4, 3) == hits


def test_max_hits():
    hits = {Feedback(0, 0): 3, Feedback(1, 0): 9, Feedback(0, 1): 2}
    assert max_hits(hits) == (Feedback(1, 0), 9)
    assert max_hits({Feedback(0, 0): 0}) == (None, 0)


def test_opening_worst_case_for_standard_game():
    """0011 leaves at most 256 of the 1296 codes, the known optimum."""
    S, _ = all_possible_codes(4, 6)
    _, worst = max_hits(count_hits(S, Code((0, 0, 1, 1)), 6, 4))
    assert worst == 256


def test_sorted_codes():
    codes = [Code((2, 0)), Code((0, 3)), Code((1, 1))]
    assert sorted_codes(codes) == [Code((0, 3)), Code((1, 1)), Code((2, 0))]
