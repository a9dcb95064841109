"""
Gradient-free optimizers over flattened network parameters
"""
from neuroevo.evolution.genetic_algorithm import GeneticOptimizer, Individual
from neuroevo.evolution.particle_swarm import ParticleSwarmOptimizer, Particle, ParticleGroup
__all__ = ['GeneticOptimizer', 'Individual', 'ParticleSwarmOptimizer', 'Particle', 'ParticleGroup']
