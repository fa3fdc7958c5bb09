"""Shared type aliases for the vinflated_poisson package."""

import numpy as np

# Anything ``numpy.random.default_rng`` accepts as a seed.
RandomState = int | np.random.Generator | None
