"""
Scalar metrics emitted for reporting, plus the fitness/error functions the
population optimizers are usually driven with.
"""

import numpy as np

from typing import Sequence

from neuroevo.network.loss import Loss

def confusion_count(matrix, result, label, threshold: float = 0.5):
    """
    Add one binary prediction to a 2x2 confusion matrix.

    ``matrix[0][0]`` true positives, ``matrix[1][1]`` true negatives,
    ``matrix[1][0]`` predicted positive on a negative label and
    ``matrix[0][1]`` predicted negative on a positive label.
    """
    predicted = float(np.ravel(result)[0])
    actual = float(np.ravel(label)[0])
    if predicted > threshold:
        if actual == 1.0:
            matrix[0][0] += 1
        else:
            matrix[1][0] += 1
    else:
        if actual == 0.0:
            matrix[1][1] += 1
        else:
            matrix[0][1] += 1
    return matrix

def accuracy(matrix) -> float:
    total = matrix[0][0] + matrix[0][1] + matrix[1][0] + matrix[1][1]
    if total == 0:
        return 0.0
    return (matrix[0][0] + matrix[1][1]) / total

def r2_score(predictions: Sequence[float], labels: Sequence[float]) -> float:
    predictions = np.ravel(np.asarray(predictions, dtype=np.float64))
    labels = np.ravel(np.asarray(labels, dtype=np.float64))
    total_sum_sqr = np.sum((labels - labels.mean()) ** 2)
    sum_sqr = np.sum((labels - predictions) ** 2)
    if total_sum_sqr == 0:
        return 0.0
    return float(1.0 - sum_sqr / total_sum_sqr)

def mean_loss(network, samples, loss: Loss = None) -> float:
    loss = loss or Loss('mse')
    samples = list(samples)
    total = 0.0
    for inputs, labels in samples:
        total += loss.criterion(network.forward(inputs), labels)
    return total / max(len(samples), 1)

def mean_error(network, samples, loss: Loss = None) -> float:
    """Mean absolute error by default; the particle swarm minimizes this."""
    return mean_loss(network, samples, loss or Loss('abs_err'))

def classification_fitness(network, samples, loss: Loss = None, threshold: float = 0.5) -> float:
    """accuracy + 0.001 / mean loss, higher is better."""
    loss = loss or Loss('square_err')
    samples = list(samples)
    matrix = [[0, 0], [0, 0]]
    run_loss = 0.0
    for inputs, labels in samples:
        result = network.forward(inputs)
        run_loss += loss.criterion(result, labels)
        confusion_count(matrix, result, labels, threshold)
    avg_loss = run_loss / max(len(samples), 1)
    return accuracy(matrix) + 0.001 / max(avg_loss, 1e-12)
