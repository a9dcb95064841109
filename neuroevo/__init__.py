"""
neuroevo: feed-forward networks trained by backpropagation, a genetic
algorithm or particle swarm optimization.
"""
__version__ = "0.1.0"
