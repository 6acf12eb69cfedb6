"""
space.py

The hypothesis space: every code of a given size, plus the "hit map"
helpers that count how a guess partitions a set of codes by feedback.
"""

from typing import Dict, Iterable, List, Tuple

from .game import Code, Feedback, score_code

CodeSet = Dict[str, Code]
HitMap = Dict[Feedback, int]


# =========================
# Enumeration
# =========================


def all_possible_codes(positions: int, colors: int) -> Tuple[CodeSet, List[Code]]:
    """
    Enumerate all colors**positions codes.

    Index i maps to a code by mixed-radix decomposition in base `colors`,
    most significant position first, so the returned list is in
    lexicographic order of the canonical strings.
    """
    total = colors ** positions
    powers = [colors ** (positions - pos - 1) for pos in range(positions)]

    code_set: CodeSet = {}
    code_list: List[Code] = []
    for i in range(total):
        remainder = i
        values = []
        for power in powers:
            digit = remainder // power
            remainder -= digit * power
            values.append(digit)
        code = Code(values)
        code_set[str(code)] = code
        code_list.append(code)

    return code_set, code_list


def sorted_codes(codes: Iterable[Code]) -> List[Code]:
    return sorted(codes, key=str)


# =========================
# Feedback partitions
# =========================


def possible_results(positions: int) -> List[Feedback]:
    """Every feedback with exact + color_only <= positions."""
    out = []
    for exact in range(positions + 1):
        for color_only in range(positions - exact, -1, -1):
            out.append(Feedback(exact, color_only))
    return out


def empty_hit_map(positions: int) -> HitMap:
    return {result: 0 for result in possible_results(positions)}


def count_hits(hypotheses: CodeSet, code: Code, colors: int, positions: int) -> HitMap:
    """How many codes in `hypotheses` fall into each feedback bucket for `code`."""
    hits = empty_hit_map(positions)
    for s in hypotheses.values():
        hits[score_code(code, s, colors)] += 1
    return hits


def max_hits(hits: HitMap) -> Tuple[Feedback, int]:
    """The largest bucket: the worst case left over after guessing."""
    best_result = None
    best_score = 0
    for result, count in hits.items():
        if count > best_score:
            best_score = count
            best_result = result
    return best_result, best_score


def select_with_result(
    hypotheses: CodeSet,
    guess: Code,
    result: Feedback,
    colors: int,
    positions: int,
) -> Tuple[CodeSet, HitMap]:
    """
    Keep the codes that would have produced `result` for `guess`.

    Also returns the hit map of the whole input set, which is the partition
    the guess actually induced.
    """
    kept: CodeSet = {}
    hits = empty_hit_map(positions)
    for key, s in hypotheses.items():
        res = score_code(s, guess, colors)
        hits[res] += 1
        if res == result:
            kept[key] = s
    return kept, hits
