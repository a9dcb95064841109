"""Process-wide random generator, replaceable by a seeded one for tests."""

import numpy as np

from neuroevo.utils.config_loader import get_config_section

_default_rng = None

def get_default_rng() -> np.random.Generator:
    global _default_rng
    if _default_rng is None:
        seed = get_config_section('random').get('seed')
        _default_rng = np.random.default_rng(seed)
    return _default_rng

def set_default_rng(seed=None) -> np.random.Generator:
    """Reseed the shared generator and return it."""
    global _default_rng
    _default_rng = np.random.default_rng(seed)
    return _default_rng

def resolve_rng(rng=None) -> np.random.Generator:
    return rng if rng is not None else get_default_rng()
