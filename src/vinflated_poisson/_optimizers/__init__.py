"""Optimizer strategy registry, protocol and dispatcher.

Each strategy wraps one ``scipy.optimize`` minimiser behind a uniform
``minimize()`` interface, so that :func:`run_optimizer` (and therefore
:func:`~vinflated_poisson.core.fit_vpoisson`) never branches on the
method name.

Two families exist:

* **Local** strategies (Nelder-Mead, BFGS, …) and simulated
  annealing move from the initial point.
* **Global** strategies (differential evolution) search a bounded box
  and ignore the initial point except as a population seed.

Neither family reports curvature that can be trusted for inference,
so the dispatcher computes the Hessian itself, by finite differences
of the objective at the returned optimum, whenever it is requested.

Adding a new strategy
~~~~~~~~~~~~~~~~~~~~~
1. Create a module under ``_optimizers/`` with a class that satisfies
   the :class:`OptimizerStrategy` protocol.
2. Register it with :func:`register_optimizer` (or in
   :func:`_ensure_registry` for built-ins).
3. ``fit_vpoisson(method="<name>")`` picks it up automatically.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np
from scipy.optimize import OptimizeResult
from statsmodels.tools.numdiff import approx_hess3

from ..likelihood import negative_log_likelihood

if TYPE_CHECKING:
    from .._context import FitContext
    from .._typing import RandomState

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------ #
# Strategy protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class OptimizerStrategy(Protocol):
    """Interface that every optimizer strategy must satisfy."""

    name: str
    """Canonical method name reported on the fitted model."""

    is_global: bool
    """``True`` for bounded population searches."""

    def minimize(
        self,
        objective: Callable[..., float],
        x0: np.ndarray,
        *,
        args: tuple[Any, ...] = (),
        options: dict[str, Any] | None = None,
        random_state: RandomState = None,
    ) -> OptimizeResult:
        """Minimise ``objective(x, *args)``.

        Args:
            objective: Scalar function of the parameter vector.
            x0: Initial point ``(k,)``.
            args: Extra positional arguments for *objective*.
            options: Method-specific options, forwarded opaquely.
            random_state: Seed for stochastic strategies.

        Returns:
            A ``scipy.optimize.OptimizeResult`` with at least ``x``,
            ``fun``, ``success`` and ``message``.
        """
        ...


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #

# Lazy imports to avoid circular dependencies at module load time.
# Each entry maps a lower-case method name → zero-argument factory.

_OPTIMIZER_REGISTRY: dict[str, Callable[[], OptimizerStrategy]] = {}


def _ensure_registry() -> None:
    """Populate the registry on first access."""
    if _OPTIMIZER_REGISTRY:
        return

    from .annealing import AnnealingStrategy
    from .evolution import DifferentialEvolutionStrategy
    from .local import LOCAL_METHODS, LocalStrategy

    for method in LOCAL_METHODS:
        _OPTIMIZER_REGISTRY[method.lower()] = lambda m=method: LocalStrategy(m)
    _OPTIMIZER_REGISTRY.update(
        {
            "sann": AnnealingStrategy,
            "basinhopping": AnnealingStrategy,
            "de": DifferentialEvolutionStrategy,
            "differential_evolution": DifferentialEvolutionStrategy,
        }
    )


def register_optimizer(name: str, factory: Callable[[], OptimizerStrategy]) -> None:
    """Register an optimizer factory under *name* (case-insensitive).

    Raises:
        ValueError: If *name* is empty.
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("Optimizer name must be a non-empty string.")
    _ensure_registry()
    _OPTIMIZER_REGISTRY[key] = factory


def available_optimizers() -> list[str]:
    """Return the sorted registered method names."""
    _ensure_registry()
    return sorted(_OPTIMIZER_REGISTRY)


def resolve_optimizer(method: str) -> OptimizerStrategy:
    """Return a strategy instance for the given method string.

    Raises:
        ValueError: If *method* is not recognised.
    """
    _ensure_registry()
    factory = _OPTIMIZER_REGISTRY.get(str(method).strip().lower())
    if factory is None:
        valid = ", ".join(sorted(_OPTIMIZER_REGISTRY))
        raise ValueError(f"Invalid method '{method}'. Choose from: {valid}.")
    return factory()


# ------------------------------------------------------------------ #
# Dispatcher
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class OptimizationOutcome:
    """What :func:`run_optimizer` hands back to the fit."""

    params: np.ndarray
    """Optimal parameter vector ``(k,)``."""

    loglik: float
    """Log-likelihood at :attr:`params` (``−objective``)."""

    hessian: np.ndarray | None
    """Finite-difference Hessian of the objective, or ``None``."""

    result: OptimizeResult
    """Raw result from the inner minimiser."""

    strategy: OptimizerStrategy
    """The strategy that produced the result."""


def run_optimizer(
    context: FitContext,
    start: np.ndarray | None = None,
    method: str = "Nelder-Mead",
    hessian: bool = True,
    random_state: RandomState = None,
    options: dict[str, Any] | None = None,
) -> OptimizationOutcome:
    """Minimise the negative log-likelihood of *context*.

    Args:
        context: The fit context.
        start: Initial point; zeros when ``None``.
        method: Registered method name.
        hessian: Compute the Hessian at the optimum.
        random_state: Seed for stochastic strategies.
        options: Method-specific options, forwarded to the strategy.

    Raises:
        ValueError: If *method* is unknown or *start* has the wrong
            length.
        RuntimeError: If the inner minimiser reports failure.
    """
    strategy = resolve_optimizer(method)

    x0 = np.zeros(context.n_params) if start is None else np.asarray(start, dtype=float)
    if x0.shape != (context.n_params,):
        raise ValueError(
            f"start must have length {context.n_params} "
            f"(kx={context.kx} + kz={context.kz}), got shape {x0.shape}."
        )

    logger.debug(
        "Running optimizer %s (global=%s) on %d parameters.",
        strategy.name,
        strategy.is_global,
        context.n_params,
    )
    result = strategy.minimize(
        negative_log_likelihood,
        x0,
        args=(context,),
        options=dict(options) if options else None,
        random_state=random_state,
    )
    if not result.success:
        raise RuntimeError(
            f"Optimizer '{strategy.name}' failed to converge: {result.message}"
        )

    params = np.asarray(result.x, dtype=float)
    objective = float(negative_log_likelihood(params, context))
    logger.debug(
        "Optimizer %s finished after %s evaluations (objective %.6f).",
        strategy.name,
        result.get("nfev", "?"),
        objective,
    )

    hess = None
    if hessian:
        hess = np.asarray(approx_hess3(params, negative_log_likelihood, args=(context,)))

    return OptimizationOutcome(
        params=params,
        loglik=-objective,
        hessian=hess,
        result=result,
        strategy=strategy,
    )


__all__ = [
    "OptimizationOutcome",
    "OptimizerStrategy",
    "available_optimizers",
    "register_optimizer",
    "resolve_optimizer",
    "run_optimizer",
]
