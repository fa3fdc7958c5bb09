"""Random draws from the V-inflated Poisson model.

Each draw is ``V`` with probability ``phi_i`` and a Poisson count with
mean ``mu_i`` otherwise.  With ``truncate=True`` the Poisson component
is the zero-truncated Poisson, sampled by redrawing zeros, which is
exactly the distribution the truncated likelihood describes.
"""

from __future__ import annotations

import numpy as np

from ._typing import RandomState


def _zero_truncated_poisson(mu: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Draw from Poisson(mu) conditioned on being positive."""
    draws = rng.poisson(mu)
    zeros = draws == 0
    while np.any(zeros):
        draws[zeros] = rng.poisson(mu[zeros])
        zeros = draws == 0
    return draws


def simulate_vpoisson(
    mu: np.ndarray | float,
    phi: np.ndarray | float,
    V: int,
    *,
    size: int | None = None,
    truncate: bool = False,
    random_state: RandomState = None,
) -> np.ndarray:
    """Simulate counts from the V-inflated Poisson model.

    Args:
        mu: Poisson means, scalar or ``(n,)``.
        phi: Inflation probabilities in ``[0, 1]``, scalar or ``(n,)``.
        V: The inflated count value.
        size: Number of draws when both *mu* and *phi* are scalars.
        truncate: Zero-truncate the Poisson component (needs ``V >= 1``).
        random_state: Seed or generator.

    Returns:
        int64 array of counts.

    Raises:
        ValueError: On invalid parameters.
    """
    mu = np.asarray(mu, dtype=float)
    phi = np.asarray(phi, dtype=float)
    n = size if size is not None else int(np.broadcast(mu, phi).size)
    mu = np.broadcast_to(mu, (n,)).astype(float)
    phi = np.broadcast_to(phi, (n,)).astype(float)

    if np.any(mu <= 0) or not np.all(np.isfinite(mu)):
        raise ValueError("mu must be positive and finite.")
    if np.any((phi < 0) | (phi > 1)):
        raise ValueError("phi must lie in [0, 1].")
    if V < 0 or (truncate and V < 1):
        raise ValueError(f"V must be >= {1 if truncate else 0}, got {V}.")

    rng = np.random.default_rng(random_state)
    inflated = rng.random(n) < phi
    counts = _zero_truncated_poisson(mu, rng) if truncate else rng.poisson(mu)
    counts = np.where(inflated, V, counts)
    return counts.astype(np.int64)


__all__ = ["simulate_vpoisson"]
