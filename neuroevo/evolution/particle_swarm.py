import math
import time
import numpy as np

from typing import Callable, Dict, List, Tuple

from neuroevo.evolution.evaluation import evaluate_population
from neuroevo.evolution.genetic_algorithm import random_parameters
from neuroevo.utils.config_loader import merged_section, get_config_section
from neuroevo.utils.error_calls import InvalidConfigError
from neuroevo.utils.random_source import resolve_rng
from logs.logger import get_logger, PrettyPrinter

logger = get_logger("Particle Swarm")
printer = PrettyPrinter

class Particle:
    """Swarm member; fitness is an error, so lower is better."""
    def __init__(self, position, velocity=None, rng=None):
        self.position = np.asarray(position, dtype=np.float64).reshape(-1).copy()
        if velocity is None:
            velocity = resolve_rng(rng).uniform(-1.0, 1.0, size=self.position.shape[0])
        self.velocity = np.asarray(velocity, dtype=np.float64).reshape(-1).copy()
        if self.velocity.shape != self.position.shape:
            raise ValueError(f"velocity size {self.velocity.shape[0]} != position size {self.position.shape[0]}")
        self.best_position = self.position.copy()
        self.best_fitness = math.inf

    def record(self, fitness: float) -> bool:
        """Keep the current position as personal best if ``fitness`` improves it."""
        if fitness < self.best_fitness:
            self.best_fitness = fitness
            self.best_position = self.position.copy()
            return True
        return False

    def update_velocity(self, group_best, rho1: float, rho2: float, inertia: float = 1.0) -> None:
        """v = w*v + rho1*(personal_best - x) + rho2*(group_best - x)"""
        group_best = np.asarray(group_best, dtype=np.float64)
        self.velocity = (inertia * self.velocity
                         + rho1 * (self.best_position - self.position)
                         + rho2 * (group_best - self.position))

    def move(self) -> None:
        # Positions are not clamped
        self.position = self.position + self.velocity

    def __len__(self):
        return self.position.shape[0]

class ParticleGroup:
    """Independent sub-swarm sharing a local best among its own particles only."""
    def __init__(self, particles: List[Particle], best_position=None, best_fitness: float = math.inf):
        self.particles = list(particles)
        if best_position is None:
            best_position = self.particles[0].position
        self.best_position = np.asarray(best_position, dtype=np.float64).copy()
        self.best_fitness = best_fitness

    def add(self, particle: Particle) -> None:
        self.particles.append(particle)

    def record(self, particle: Particle, fitness: float) -> bool:
        if fitness < self.best_fitness:
            self.best_fitness = fitness
            self.best_position = particle.position.copy()
            return True
        return False

    def __len__(self):
        return len(self.particles)

def gen_rho(c: float, rng=None) -> float:
    """Random acceleration coefficient U(0, 1) * c."""
    return float(resolve_rng(rng).uniform(0.0, 1.0) * c)

def init_particles(network, amount: int, rng=None, weight_range: float = 1.0) -> List[Particle]:
    rng = resolve_rng(rng)
    return [Particle(random_parameters(network, rng, weight_range), rng=rng) for _ in range(amount)]

def init_groups(network, n_groups: int, group_size: int, rng=None,
                weight_range: float = 1.0) -> List[ParticleGroup]:
    """
    Each group is drawn as ``group_size + 1`` particles; the first one only
    seeds the group's local-best position.
    """
    rng = resolve_rng(rng)
    groups = []
    for _ in range(n_groups):
        particles = init_particles(network, group_size + 1, rng, weight_range)
        groups.append(ParticleGroup(particles[1:], best_position=particles[0].position))
    return groups

class ParticleSwarmOptimizer:
    """
    Minimizes a caller-supplied ``error_fn(network) -> float`` over the
    flattened network parameters with several independent sub-swarms.

    Every iteration each particle is restored into the network and scored,
    then personal and group bests are refreshed and the particle moves with
    freshly drawn rho1 = U(0,1)*c1 and rho2 = U(0,1)*c2. There is no
    convergence test; the run lasts ``iterations`` rounds.
    """
    def __init__(self, config: dict = None, rng=None):
        self.pso_config = merged_section('particle_swarm', config)
        self.n_groups = self.pso_config.get('groups', 5)
        self.group_size = self.pso_config.get('group_size', 4)
        self.iterations = self.pso_config.get('iterations', 100)
        self.inertia = self.pso_config.get('inertia', 1.0)
        self.c1 = self.pso_config.get('c1', 1.0)
        self.c2 = self.pso_config.get('c2', 1.5)
        self.workers = self.pso_config.get('workers', 1)
        self.weight_range = self.pso_config.get(
            'weight_range', get_config_section('network').get('weight_range', 1.0))

        if self.n_groups <= 0 or self.group_size <= 0:
            raise InvalidConfigError(
                f"groups and group_size must be positive, got {self.n_groups} and {self.group_size}")
        if self.iterations <= 0:
            raise InvalidConfigError(f"Iteration count must be positive, got {self.iterations}")
        if self.workers < 1:
            raise InvalidConfigError(f"workers must be at least 1, got {self.workers}")

        self.rng = resolve_rng(rng)
        self.groups: List[ParticleGroup] = []
        self.history: Dict[str, List[float]] = {'best_error': []}

        logger.info(f"Particle Swarm initialized: {self.n_groups} groups of {self.group_size}, "
                    f"inertia={self.inertia}, c1={self.c1}, c2={self.c2}")

    def initialize(self, network) -> List[ParticleGroup]:
        self.groups = init_groups(network, self.n_groups, self.group_size, self.rng, self.weight_range)
        self.history = {'best_error': []}
        return self.groups

    def step(self, network, error_fn: Callable) -> float:
        """One iteration over every group; returns the best group error."""
        for group in self.groups:
            errors = evaluate_population(
                [p.position for p in group.particles], network, error_fn, self.workers)
            for particle, error in zip(group.particles, errors):
                particle.record(error)
                group.record(particle, error)
                particle.update_velocity(group.best_position, gen_rho(self.c1, self.rng),
                                         gen_rho(self.c2, self.rng), self.inertia)
                particle.move()
        return self.best_group().best_fitness

    def best_group(self) -> ParticleGroup:
        best = self.groups[0]
        for group in self.groups[1:]:
            if group.best_fitness < best.best_fitness:
                best = group
        return best

    def run(self, network, error_fn: Callable, iterations: int = None) -> Tuple[np.ndarray, float]:
        if iterations is None:
            iterations = self.iterations
        elif iterations <= 0:
            raise InvalidConfigError(f"Iteration count must be positive, got {iterations}")
        if not self.groups:
            self.initialize(network)

        printer.status("PSO", f"Searching {network.architecture} for {iterations} iterations", "info")
        start = time.time()
        for i in range(iterations):
            best_error = self.step(network, error_fn)
            self.history['best_error'].append(best_error)
            logger.debug(f"[iteration {i}] lbest: {best_error:.5e}")

        best = self.best_group()
        network.restore_parameters(best.best_position)
        logger.info(f"Particle Swarm finished in {time.time() - start:.3f}s, best error {best.best_fitness:.5e}")
        return best.best_position.copy(), best.best_fitness

    def summary(self) -> None:
        printer.section_header("Particle Swarm")
        rows = [["iterations", len(self.history['best_error'])],
                ["groups", self.n_groups],
                ["group_size", self.group_size],
                ["inertia", self.inertia]]
        if self.history['best_error']:
            rows.append(["best_error", f"{self.history['best_error'][-1]:.6e}"])
        printer.table(["metric", "value"], rows)
