import copy
import threading

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence

from logs.logger import get_logger

logger = get_logger("Population Evaluation")

def evaluate_population(candidates: Sequence, network, score_fn: Callable, workers: int = 1) -> List[float]:
    """
    Restore each parameter vector into a network and score it.

    With ``workers > 1`` every worker thread scores on its own deep copy of
    ``network``; the caller's network is only used when running serially.
    Scores come back in candidate order.
    """
    if workers <= 1 or len(candidates) <= 1:
        scores = []
        for params in candidates:
            network.restore_parameters(params)
            scores.append(float(score_fn(network)))
        return scores

    local = threading.local()
    template = copy.deepcopy(network)
    lock = threading.Lock()

    def _score(params):
        worker_net = getattr(local, "network", None)
        if worker_net is None:
            with lock:
                worker_net = copy.deepcopy(template)
            local.network = worker_net
        worker_net.restore_parameters(params)
        return float(score_fn(worker_net))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_score, params) for params in candidates]
        scores = [future.result() for future in futures]

    logger.debug(f"Scored {len(scores)} candidates on {workers} workers")
    return scores
