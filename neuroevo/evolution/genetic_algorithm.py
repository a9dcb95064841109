import math
import time
import numpy as np

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from neuroevo.evolution.evaluation import evaluate_population
from neuroevo.evolution.selection import tournament_selection
from neuroevo.utils.config_loader import merged_section, get_config_section
from neuroevo.utils.error_calls import InvalidConfigError, NaNException
from neuroevo.utils.random_source import resolve_rng
from logs.logger import get_logger, PrettyPrinter

logger = get_logger("Genetic Algorithm")
printer = PrettyPrinter

@dataclass
class Individual:
    """A flattened network parameter vector and its fitness (higher is better)."""
    chromosome: np.ndarray
    fitness: float = 0.0

    def __post_init__(self):
        self.chromosome = np.asarray(self.chromosome, dtype=np.float64).reshape(-1)

    def set_fitness(self, value: float) -> None:
        self.fitness = float(value)

    def copy(self) -> "Individual":
        return Individual(self.chromosome.copy(), self.fitness)

    def __len__(self):
        return self.chromosome.shape[0]

def random_parameters(network, rng=None, weight_range: float = 1.0) -> np.ndarray:
    """Random weights in [-weight_range, weight_range]; biases kept from ``network``."""
    rng = resolve_rng(rng)
    parts = []
    for layer in network.layers:
        parts.append(rng.uniform(-weight_range, weight_range, size=layer.weights.size))
        parts.append(layer.biases.copy())
    return np.concatenate(parts)

def init_population(network, size: int, rng=None, weight_range: float = 1.0) -> List[Individual]:
    rng = resolve_rng(rng)
    return [Individual(random_parameters(network, rng, weight_range)) for _ in range(size)]

def assign_individual(network, individual: Individual) -> None:
    """Load an individual's chromosome into ``network``."""
    network.restore_parameters(individual.chromosome)

def mating(pool: List[Individual], rng=None) -> List[Individual]:
    """Uniform crossover: one offspring per pool slot, two distinct parents each."""
    rng = resolve_rng(rng)
    n = len(pool)
    if n < 2:
        return [Individual(ind.chromosome.copy()) for ind in pool]

    offspring = []
    for _ in range(n):
        i, j = rng.choice(n, size=2, replace=False)
        coin = rng.random(len(pool[i])) < 0.5
        offspring.append(Individual(np.where(coin, pool[i].chromosome, pool[j].chromosome)))
    return offspring

def mutate(population: List[Individual], amount: int, p_m: float, rng=None) -> List[Individual]:
    """
    Pick ``amount`` individuals without replacement and return mutated
    copies: each gene is shifted by U[-1, 1] with probability ``p_m``.
    """
    rng = resolve_rng(rng)
    if amount > len(population):
        raise ValueError(f"Cannot mutate {amount} individuals out of {len(population)}")

    mutated = []
    for idx in rng.choice(len(population), size=amount, replace=False):
        child = Individual(population[idx].chromosome.copy())
        mask = rng.random(len(child)) < p_m
        child.chromosome[mask] += rng.uniform(-1.0, 1.0, size=int(mask.sum()))
        mutated.append(child)
    return mutated

def mutate_nonuniform(population: List[Individual], amount: int, p_m: float, generation: int,
                      beta: float = 1.0, rng=None) -> List[Individual]:
    """``mutate`` with the gene probability annealed to p_m * e^(-beta * generation)."""
    return mutate(population, amount, p_m * math.exp(-beta * generation), rng=rng)

class GeneticOptimizer:
    """
    Evolves flattened network parameters.

    Generation loop: evaluate -> tournament selection -> uniform crossover
    -> mutation of ``mutation_amount`` offspring -> fill the remaining slots
    with copies of the generation's best individual. Only the mutated
    offspring and the elite copies make up the next generation.

    Fitness comes from a caller-supplied ``fitness_fn(network) -> float``
    evaluated after the candidate has been restored into the network.
    """
    def __init__(self, config: dict = None, rng=None):
        self.ga_config = merged_section('genetic_algorithm', config)
        self.population_size = self.ga_config.get('population_size', 25)
        self.generations = self.ga_config.get('generations', 200)
        self.mutation_amount = self.ga_config.get('mutation_amount', 20)
        self.mutation_probability = self.ga_config.get('mutation_probability', 0.02)
        self.non_uniform = self.ga_config.get('non_uniform', False)
        self.beta = self.ga_config.get('beta', 1.0)
        self.workers = self.ga_config.get('workers', 1)
        self.weight_range = self.ga_config.get(
            'weight_range', get_config_section('network').get('weight_range', 1.0))
        self._validate()

        self.rng = resolve_rng(rng)
        self.population: List[Individual] = []
        self.best_individual: Optional[Individual] = None
        self.history: Dict[str, List[float]] = {'best_fitness': [], 'generation_best': []}

        logger.info(f"Genetic Algorithm initialized: population={self.population_size}, "
                    f"mutation_amount={self.mutation_amount}, p_m={self.mutation_probability}")

    def _validate(self):
        if self.population_size < 2:
            raise InvalidConfigError(f"Population size must be at least 2, got {self.population_size}")
        if self.generations <= 0:
            raise InvalidConfigError(f"Generation count must be positive, got {self.generations}")
        if not 0 <= self.mutation_probability <= 1:
            raise InvalidConfigError(f"Mutation probability must be in [0, 1], got {self.mutation_probability}")
        if not 0 <= self.mutation_amount < self.population_size:
            raise InvalidConfigError(
                f"mutation_amount must be in [0, population_size), got {self.mutation_amount} "
                f"for population {self.population_size}; elitism needs at least one free slot")
        if self.workers < 1:
            raise InvalidConfigError(f"workers must be at least 1, got {self.workers}")

    def initialize(self, network) -> List[Individual]:
        self.population = init_population(network, self.population_size, self.rng, self.weight_range)
        self.best_individual = None
        self.history = {'best_fitness': [], 'generation_best': []}
        return self.population

    def evaluate(self, network, fitness_fn: Callable) -> Individual:
        """Score the current population; returns this generation's best."""
        scores = evaluate_population(
            [ind.chromosome for ind in self.population], network, fitness_fn, self.workers)
        for idx, fitness in enumerate(scores):
            if not math.isfinite(fitness):
                logger.error(f"Individual {idx} scored a non-finite fitness: {fitness}")
                raise NaNException(f"Fitness is {fitness} for individual {idx}")

        generation_best = None
        for individual, fitness in zip(self.population, scores):
            individual.set_fitness(fitness)
            if generation_best is None or fitness > generation_best.fitness:
                generation_best = individual
        if self.best_individual is None or generation_best.fitness > self.best_individual.fitness:
            self.best_individual = generation_best.copy()
        return generation_best.copy()

    def step(self, generation_best: Individual, generation: int) -> List[Individual]:
        """Build the next generation from the evaluated population."""
        pool = tournament_selection(self.population, self.rng)
        offspring = mating(pool, self.rng)
        if self.non_uniform:
            new_population = mutate_nonuniform(
                offspring, self.mutation_amount, self.mutation_probability, generation,
                beta=self.beta, rng=self.rng)
        else:
            new_population = mutate(offspring, self.mutation_amount, self.mutation_probability, self.rng)

        # elitism
        for _ in range(self.population_size - len(new_population)):
            new_population.append(generation_best.copy())

        self.population = new_population
        return new_population

    def run(self, network, fitness_fn: Callable, generations: int = None) -> Individual:
        if generations is None:
            generations = self.generations
        elif generations <= 0:
            raise InvalidConfigError(f"Generation count must be positive, got {generations}")
        if not self.population:
            self.initialize(network)

        printer.status("GA", f"Evolving {network.architecture} for {generations} generations", "info")
        start = time.time()
        for generation in range(generations):
            generation_best = self.evaluate(network, fitness_fn)
            self.history['generation_best'].append(generation_best.fitness)
            self.history['best_fitness'].append(self.best_individual.fitness)
            logger.debug(f"[generation {generation}] max_fitness: {generation_best.fitness:.5f}, "
                         f"best so far: {self.best_individual.fitness:.5f}")
            self.step(generation_best, generation)

        assign_individual(network, self.best_individual)
        logger.info(f"Genetic Algorithm finished in {time.time() - start:.3f}s, "
                    f"best fitness {self.best_individual.fitness:.5f}")
        return self.best_individual

    def summary(self) -> None:
        printer.section_header("Genetic Algorithm")
        rows = [["generations", len(self.history['best_fitness'])],
                ["population_size", self.population_size],
                ["mutation_amount", self.mutation_amount],
                ["mutation_probability", self.mutation_probability]]
        if self.best_individual is not None:
            rows.append(["best_fitness", f"{self.best_individual.fitness:.6f}"])
        printer.table(["metric", "value"], rows)
