"""Local point-to-point strategies backed by ``scipy.optimize.minimize``.

The objective's gradient is never supplied: gradient-based methods
fall back to scipy's finite-difference approximation, matching the
derivative-free contract of the likelihood evaluator.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy.optimize import OptimizeResult, minimize

if TYPE_CHECKING:
    from .._typing import RandomState

LOCAL_METHODS: tuple[str, ...] = (
    "Nelder-Mead",
    "BFGS",
    "CG",
    "L-BFGS-B",
    "Powell",
    "TNC",
    "SLSQP",
)
"""``scipy.optimize.minimize`` methods exposed by name."""

# scipy's Nelder-Mead defaults (200·k iterations, 1e-4 tolerances)
# stop well short of the optimum on likelihoods with thousands of
# observations; these are merged under the caller's options.
_DEFAULT_OPTIONS: dict[str, dict[str, Any]] = {
    "Nelder-Mead": {"maxiter": 10_000, "maxfev": 20_000, "xatol": 1e-6, "fatol": 1e-8},
}


class LocalStrategy:
    """Delegate to ``scipy.optimize.minimize(method=...)``.

    Args:
        method: One of :data:`LOCAL_METHODS`.

    Raises:
        ValueError: If *method* is not a supported local method.
    """

    is_global = False

    def __init__(self, method: str = "Nelder-Mead") -> None:
        if method not in LOCAL_METHODS:
            raise ValueError(
                f"Unknown local method '{method}'. Choose from: {', '.join(LOCAL_METHODS)}."
            )
        self.name = method

    def __repr__(self) -> str:
        return f"LocalStrategy({self.name!r})"

    def minimize(
        self,
        objective: Callable[..., float],
        x0: np.ndarray,
        *,
        args: tuple[Any, ...] = (),
        options: dict[str, Any] | None = None,
        random_state: RandomState = None,  # noqa: ARG002
    ) -> OptimizeResult:
        merged = {**_DEFAULT_OPTIONS.get(self.name, {}), **(options or {})}
        return minimize(objective, x0, args=args, method=self.name, options=merged)
