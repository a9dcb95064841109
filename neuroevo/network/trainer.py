import time
import math
import logging
import numpy as np

from typing import Dict, List, Optional, Sequence, Tuple

from neuroevo.network.loss import Loss
from neuroevo.network.neural_network import Network
from neuroevo.utils.config_loader import merged_section, get_config_section
from neuroevo.utils.error_calls import NaNException, InvalidConfigError
from neuroevo.utils.random_source import resolve_rng
from logs.logger import get_logger, PrettyPrinter

logger = get_logger("Gradient Trainer")
printer = PrettyPrinter

Sample = Tuple[Sequence[float], Sequence[float]]

class GradientTrainer:
    """Per-sample gradient descent with momentum over a Network."""
    def __init__(self, network: Network, loss: Optional[Loss] = None, config: dict = None, rng=None):
        self.network = network
        self.gradient_config = merged_section('gradient', config)
        self.loss = loss or Loss(get_config_section('loss').get('name', 'mse'))
        self.learning_rate = self.gradient_config.get('learning_rate', 0.01)
        self.momentum = self.gradient_config.get('momentum', 0.0)
        self.epochs = self.gradient_config.get('epochs', 1000)
        self.shuffle = self.gradient_config.get('shuffle', True)
        self.rng = resolve_rng(rng)

        if self.learning_rate <= 0:
            raise InvalidConfigError(f"Learning rate must be positive, got {self.learning_rate}")
        if self.momentum < 0:
            raise InvalidConfigError(f"Momentum cannot be negative, got {self.momentum}")
        if self.epochs <= 0:
            raise InvalidConfigError(f"Epoch count must be positive, got {self.epochs}")

        self.history: Dict[str, List[float]] = {'loss': [], 'valid_loss': []}

    def train_step(self, inputs, labels) -> float:
        """forward -> criterion -> backward -> update for one sample."""
        try:
            result = self.network.forward(inputs)
            loss = self.loss.criterion(result, labels)
            if not math.isfinite(loss):
                raise NaNException(f"Loss is {loss} for input {list(np.ravel(inputs))}")
            self.loss.backward(self.network)
            self.network.update(self.learning_rate, self.momentum)
        except Exception as e:
            logger.error(f"Training step failed: {str(e)}")
            raise
        return loss

    def train_epoch(self, samples: Sequence[Sample]) -> float:
        order = np.arange(len(samples))
        if self.shuffle:
            self.rng.shuffle(order)

        running_loss = 0.0
        for idx in order:
            inputs, labels = samples[idx]
            running_loss += self.train_step(inputs, labels)
        return running_loss / max(len(samples), 1)

    def evaluate(self, samples: Sequence[Sample]) -> float:
        """Mean loss over ``samples`` without touching the parameters."""
        total = 0.0
        for inputs, labels in samples:
            total += self.loss.criterion(self.network.forward(inputs), labels)
        return total / max(len(samples), 1)

    def fit(self, training: Sequence[Sample], validation: Sequence[Sample] = None,
            epochs: int = None) -> Dict[str, List[float]]:
        if epochs is None:
            epochs = self.epochs
        elif epochs <= 0:
            raise InvalidConfigError(f"Epoch count must be positive, got {epochs}")
        training = list(training)
        validation = list(validation) if validation else []
        if not training:
            raise ValueError("Training set cannot be empty")

        start = time.time()
        for epoch in range(epochs):
            running_loss = self.train_epoch(training)
            self.history['loss'].append(running_loss)

            if validation:
                valid_loss = self.evaluate(validation)
                self.history['valid_loss'].append(valid_loss)
            else:
                valid_loss = float('nan')

            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"epoch: {epoch}, loss: {running_loss:.6f}, valid_loss: {valid_loss:.6f}")

        logger.info(f"Gradient training finished: {epochs} epochs in {time.time() - start:.3f}s, "
                    f"final loss {self.history['loss'][-1]:.6f}")
        return self.history

    def summary(self) -> None:
        rows = [["epochs", len(self.history['loss'])],
                ["learning_rate", self.learning_rate],
                ["momentum", self.momentum]]
        if self.history['loss']:
            rows.append(["final_loss", f"{self.history['loss'][-1]:.6f}"])
        if self.history['valid_loss']:
            rows.append(["final_valid_loss", f"{self.history['valid_loss'][-1]:.6f}"])
        printer.table(["metric", "value"], rows, title=f"Gradient training {self.network.architecture}")


# ====================== Usage Example ======================
if __name__ == "__main__":
    print("\n=== Running Gradient Trainer ===\n")
    from neuroevo.utils.random_source import set_default_rng

    rng = set_default_rng(7)
    xor = [([0.0, 0.0], [0.0]), ([0.0, 1.0], [1.0]), ([1.0, 0.0], [1.0]), ([1.0, 1.0], [0.0])]

    network = Network.from_architecture([2, 4, 1], activations="sigmoid", rng=rng)
    trainer = GradientTrainer(network, config={'learning_rate': 0.5, 'momentum': 0.5, 'epochs': 3000}, rng=rng)
    trainer.fit(xor)
    trainer.summary()

    for inputs, labels in xor:
        print(f"{inputs} -> {network.forward(inputs)[0]:.4f} (expected {labels[0]})")
    print("\n=== Successfully Trained XOR ===\n")
