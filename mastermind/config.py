CONFIG = {
    # Default game size
    "positions": 4,
    "colors": 6,

    # Hard bounds on the game size (keeps C^P tractable)
    "max_positions": 10,
    "max_colors": 10,

    # Parallel evaluation
    "limiter_size": 100,          # max pending units of work per Limiter
    "workers": 4,                 # pool size
    "parallel_backend": "thread", # "thread" or "process"
    "score_chunk_size": 64,       # candidates per scoring unit (minimax)

    # Genetic solver
    "population_size": 150,
    "max_generations": 100,
    "max_sample_population": 60,
    "fitness_threshold": 0.0,
    "max_moves": 9,
    "fitness_workers": 1,

    # Fitness weights: f = a*sum|dX| + sum|dY| + b*P*(move-1)
    "weight_a": 2.0,
    "weight_b": 2.0,

    # Reproduction operators
    "one_point_rate": 0.5,
    "mutation_rate": 0.03,
    "permutation_rate": 0.03,
    "inversion_rate": 0.02,

    # Logging
    "debug": False,
}
