"""
genetic.py

Genetic-algorithm code-breaker.

Instead of keeping the full hypothesis set, each move evolves a population
of candidate codes towards consistency with every guess played so far and
guesses one of the "eligible" codes it found.

Fitness of a code c at move i (lower is better):

    f(c; i) = a * sum_q |X'q(c) - Xq| + sum_q |Y'q(c) - Yq| + b * P * (i - 1)

where (Xq, Yq) is the feedback actually received for guess gq and
(X'q(c), Y'q(c)) is the feedback gq would have received if c were the
secret. The last term is the same for every citizen of a move, so a code
is eligible when the two sums (its consistency) are at or below the
threshold.

Reproduction: the better half of the population pair off in order; both
parents survive and each pair spawns two children by crossover (1-point
or 2-point), followed by a chance of mutation, permutation and inversion.
"""

import random
from contextlib import nullcontext
from typing import Dict, List, Optional, Sequence, Tuple

from .config import CONFIG
from .game import Code, Feedback, Game, random_code, score_code
from .parallel import Limiter, chunked

History = Tuple[Tuple[Code, Feedback], ...]

# Opening guesses by number of positions
INITIAL_GUESSES = {
    4: (0, 0, 1, 2),
    5: (0, 0, 1, 2, 3),
    6: (0, 0, 1, 1, 2, 3),
}


# =========================
# Population members
# =========================


class Citizen:
    __slots__ = ("code", "fitness")

    def __init__(self, code: Code, fitness: Optional[float] = None):
        self.code = code
        self.fitness = fitness

    @property
    def key(self) -> str:
        return str(self.code)

    def __repr__(self):
        if self.fitness is None:
            return f"{{{self.code}, -}}"
        return f"{{{self.code}, {self.fitness:.2f}}}"


Population = Dict[str, Citizen]


# =========================
# Fitness
# =========================


def consistency(code: Code, history: History, colors: int, weight_a: float) -> float:
    """a * sum|X' - X| + sum|Y' - Y| over every guess played so far."""
    sum_x = 0
    sum_y = 0
    for guess, actual in history:
        hypothetical = score_code(code, guess, colors)
        sum_x += abs(hypothetical.exact - actual.exact)
        sum_y += abs(hypothetical.color_only - actual.color_only)
    return weight_a * sum_x + sum_y


def move_penalty(positions: int, move: int, weight_b: float) -> float:
    return weight_b * positions * (move - 1)


def fitness(
    code: Code,
    history: History,
    colors: int,
    positions: int,
    weight_a: float = CONFIG["weight_a"],
    weight_b: float = CONFIG["weight_b"],
) -> float:
    return consistency(code, history, colors, weight_a) + move_penalty(positions, len(history), weight_b)


def _fitness_chunk(codes, history, colors, positions, weight_a, weight_b):
    """Worker: (key, fitness) for every code in `codes`."""
    return [
        (str(code), fitness(code, history, colors, positions, weight_a, weight_b))
        for code in codes
    ]


# =========================
# Solver
# =========================


class GeneticSolver:
    def __init__(
        self,
        game: Game,
        rng: Optional[random.Random] = None,
        population_size: int = CONFIG["population_size"],
        max_generations: int = CONFIG["max_generations"],
        max_sample_population: int = CONFIG["max_sample_population"],
        fitness_threshold: float = CONFIG["fitness_threshold"],
        max_moves: int = CONFIG["max_moves"],
        weight_a: float = CONFIG["weight_a"],
        weight_b: float = CONFIG["weight_b"],
        one_point_rate: float = CONFIG["one_point_rate"],
        mutation_rate: float = CONFIG["mutation_rate"],
        permutation_rate: float = CONFIG["permutation_rate"],
        inversion_rate: float = CONFIG["inversion_rate"],
        limiter_size: int = CONFIG["limiter_size"],
        workers: int = CONFIG["fitness_workers"],
        backend: str = CONFIG["parallel_backend"],
        chunk_size: int = CONFIG["score_chunk_size"],
        verbose: bool = CONFIG["debug"],
    ):
        self.game = game
        self.rng = rng if rng is not None else random.Random()

        self.population_size = population_size
        self.max_generations = max_generations
        self.max_sample_population = max_sample_population
        self.fitness_threshold = fitness_threshold
        self.max_moves = max_moves
        self.weight_a = weight_a
        self.weight_b = weight_b

        self.one_point_rate = one_point_rate
        self.mutation_rate = mutation_rate
        self.permutation_rate = permutation_rate
        self.inversion_rate = inversion_rate

        self.limiter_size = limiter_size
        self.workers = workers
        self.backend = backend
        self.chunk_size = chunk_size
        self.verbose = verbose

        self.move = 0
        self.guesses: List[Code] = []
        self.results: List[Feedback] = []
        self.eligible: Population = {}
        self._limiter: Optional[Limiter] = None

    @property
    def positions(self) -> int:
        return self.game.positions

    @property
    def colors(self) -> int:
        return self.game.colors

    @property
    def history(self) -> History:
        return tuple(zip(self.guesses, self.results))

    # ------------- Public -------------

    def solve(self) -> Code:
        """Play until a win; RuntimeError once max_moves guesses were wasted."""
        self.move = 0
        self.guesses = []
        self.results = []
        self.eligible = {}

        with Limiter(self.limiter_size, self.workers, self.backend) as self._limiter:
            try:
                return self._play(self.initial_guess())
            finally:
                self._limiter = None

    def _play(self, guess: Code) -> Code:
        while True:
            if self.move >= self.max_moves:
                raise RuntimeError(f"didn't find solution in {self.move} moves")

            self.move += 1
            result = self.game.scored_guess(guess)
            self.guesses.append(guess)
            self.results.append(result)
            if self.verbose:
                print(f"[genetic] move {self.move}: guess {guess} -> {result}")

            if self.game.is_win(result):
                return guess

            survivors = self.eligible
            self.eligible = {}

            population = self.initialize_population(self.population_size)
            for key, citizen in survivors.items():
                population[key] = Citizen(citizen.code)

            for generation in range(self.max_generations):
                # add this move's eligible codes back into the population
                population.update(self.eligible)
                if len(population) < 2:
                    population.update(self.initialize_population(self.population_size))

                population = self.generate(population)

                for citizen in population.values():
                    if self.is_eligible(citizen):
                        self.eligible[citizen.key] = citizen

                if self.verbose:
                    print(
                        f"[genetic] move {self.move} generation {generation}: "
                        f"population {len(population)}, eligible {len(self.eligible)}"
                    )
                if len(self.eligible) >= self.max_sample_population:
                    break

            guess = self.best_candidate(self.eligible).code

    def initial_guess(self) -> Code:
        pattern = INITIAL_GUESSES.get(self.positions)
        if pattern is None:
            pattern = [max(0, i - 1) for i in range(self.positions)]
        return Code(v % self.colors for v in pattern)

    def initialize_population(self, size: int) -> Population:
        """`size` distinct random codes (capped at the size of the code space)."""
        size = min(size, self.colors ** self.positions)
        population: Population = {}
        while len(population) < size:
            code = random_code(self.positions, self.colors, self.rng)
            key = str(code)
            if key not in population:
                population[key] = Citizen(code)
        return population

    def is_eligible(self, citizen: Citizen) -> bool:
        offset = move_penalty(self.positions, self.move, self.weight_b)
        return citizen.fitness - offset <= self.fitness_threshold

    def best_candidate(self, population: Population) -> Citizen:
        # naive: the first eligible code, not the one most like the others
        for citizen in population.values():
            return citizen

        print(f"[genetic] WARN: move {self.move}: no eligible candidate, guessing a random code")
        return Citizen(random_code(self.positions, self.colors, self.rng))

    # ------------- Fitness -------------

    def evaluate(self, citizens: Sequence[Citizen]) -> None:
        """Set the fitness of every citizen against the current history."""
        by_key = {c.key: c for c in citizens}
        history = self.history

        def merge(scored):
            for key, value in scored:
                by_key[key].fitness = value

        with self._evaluator() as limiter:
            for chunk in chunked(list(by_key.values()), self.chunk_size):
                limiter.go(
                    _fitness_chunk,
                    [c.code for c in chunk],
                    history,
                    self.colors,
                    self.positions,
                    self.weight_a,
                    self.weight_b,
                    on_result=merge,
                )
            limiter.wait()

    def fitness_list(self, population: Population) -> List[Citizen]:
        """Evaluate the population and sort it, best first."""
        citizens = list(population.values())
        self.evaluate(citizens)
        citizens.sort(key=lambda c: (c.fitness, c.key))
        return citizens

    def _evaluator(self):
        if self._limiter is not None:
            return nullcontext(self._limiter)
        return Limiter(self.limiter_size, self.workers, self.backend)

    # ------------- Reproduction -------------

    def generate(self, population: Population) -> Population:
        """Next generation from the better half of `population`; every member is evaluated."""
        next_gen: Population = {}

        citizens = self.fitness_list(population)
        elders = citizens[: len(citizens) // 2]
        if len(elders) < 2:
            # too few codes to pair off (code spaces of 2 or 3 codes)
            return {c.key: c for c in citizens}

        for i in range(0, len(elders) - 1, 2):
            x, y = elders[i], elders[i + 1]

            next_gen[x.key] = x
            next_gen[y.key] = y

            for child in (self.spawn(x, y), self.spawn(y, x)):
                if child.key in next_gen:
                    child = self._fresh_citizen(next_gen)
                    if child is None:
                        continue
                next_gen[child.key] = child

        self.evaluate([c for c in next_gen.values() if c.fitness is None])
        return next_gen

    def _fresh_citizen(self, population: Population) -> Optional[Citizen]:
        """A random code not yet in `population`, or None if the space is exhausted."""
        if len(population) >= self.colors ** self.positions:
            return None
        while True:
            code = random_code(self.positions, self.colors, self.rng)
            if str(code) not in population:
                return Citizen(code)

    def spawn(self, x: Citizen, y: Citizen) -> Citizen:
        child = self.crossover(x, y)
        child = self.mutate(child)
        child = self.permute(child)
        child = self.invert(child)
        return child

    def crossover(self, x: Citizen, y: Citizen) -> Citizen:
        """
        1-point (at P/2) or 2-point (at P/3 and P - P/3) crossover.

        The middle segment comes from y, the rest from x.
        """
        child = list(x.code)

        if self.rng.random() < self.one_point_rate:
            cp1, cp2 = 0, self.positions // 2
        else:
            cp1 = self.positions // 3
            cp2 = self.positions - cp1

        for i in range(cp1, cp2):
            child[i] = y.code[i]

        return Citizen(Code(child))

    def mutate(self, c: Citizen) -> Citizen:
        """Replace the color of one random position with a different color."""
        if self.rng.random() >= self.mutation_rate or self.colors < 2:
            return c

        code = list(c.code)
        pos = self.rng.randrange(self.positions)
        while True:
            color = self.rng.randrange(self.colors)
            if color != code[pos]:
                code[pos] = color
                return Citizen(Code(code))

    def permute(self, c: Citizen) -> Citizen:
        """Swap the colors of two random positions."""
        if self.rng.random() >= self.permutation_rate or self.positions < 2:
            return c

        code = list(c.code)
        p1 = self.rng.randrange(self.positions)
        p2 = p1
        tries = 0
        while True:
            tries += 1
            p2 = self.rng.randrange(self.positions)
            if p1 == p2:
                continue
            if code[p1] != code[p2] or tries > 10:
                break
        code[p1], code[p2] = code[p2], code[p1]
        return Citizen(Code(code))

    def invert(self, c: Citizen) -> Citizen:
        """Reverse the colors between two random positions (inclusive)."""
        if self.rng.random() >= self.inversion_rate or self.positions < 2:
            return c

        p1 = self.rng.randrange(self.positions)
        p2 = p1
        while p2 == p1:
            p2 = self.rng.randrange(self.positions)
        p1, p2 = min(p1, p2), max(p1, p2)

        code = list(c.code)
        code[p1:p2 + 1] = code[p1:p2 + 1][::-1]
        return Citizen(Code(code))
