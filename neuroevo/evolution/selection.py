from typing import List

from neuroevo.utils.random_source import resolve_rng

def tournament_selection(population: List, rng=None) -> List:
    """
    Binary deterministic tournament with reinsertion.

    Each of the ``len(population)`` draws picks two distinct contestants;
    draws are independent, so an individual can enter the pool many times.
    The higher fitness wins and a tie goes to the second contestant.
    """
    rng = resolve_rng(rng)
    n = len(population)
    if n == 0:
        return []
    if n == 1:
        return [population[0].copy()]

    results = []
    for _ in range(n):
        i, j = rng.choice(n, size=2, replace=False)
        first, second = population[i], population[j]
        winner = first if first.fitness > second.fitness else second
        results.append(winner.copy())
    return results
