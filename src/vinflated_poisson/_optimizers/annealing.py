"""Simulated-annealing style search via ``scipy.optimize.basinhopping``.

Basin-hopping perturbs the current point at random, re-minimises
locally (Nelder-Mead, so no gradients are needed) and accepts or
rejects the new basin with a Metropolis criterion at temperature ``T``.
It is the stochastic counterpart of the local strategies: it starts
from the initial point and is seeded through ``random_state``.

Options
~~~~~~~
``niter``, ``T``, ``stepsize``, ``interval`` and ``niter_success`` are
forwarded to ``basinhopping``; ``minimizer_kwargs`` overrides the inner
minimiser configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy.optimize import OptimizeResult, basinhopping

from .local import _DEFAULT_OPTIONS

if TYPE_CHECKING:
    from .._typing import RandomState

_DEFAULT_NITER = 100


class AnnealingStrategy:
    """Seeded basin-hopping around a Nelder-Mead local minimiser."""

    name = "SANN"
    is_global = False

    def __repr__(self) -> str:
        return "AnnealingStrategy()"

    def minimize(
        self,
        objective: Callable[..., float],
        x0: np.ndarray,
        *,
        args: tuple[Any, ...] = (),
        options: dict[str, Any] | None = None,
        random_state: RandomState = None,
    ) -> OptimizeResult:
        opts = dict(options or {})
        minimizer_kwargs = {
            "method": "Nelder-Mead",
            "args": args,
            "options": dict(_DEFAULT_OPTIONS["Nelder-Mead"]),
        }
        minimizer_kwargs.update(opts.pop("minimizer_kwargs", {}))
        opts.setdefault("niter", _DEFAULT_NITER)

        return basinhopping(
            objective,
            x0,
            minimizer_kwargs=minimizer_kwargs,
            seed=random_state,
            **opts,
        )
