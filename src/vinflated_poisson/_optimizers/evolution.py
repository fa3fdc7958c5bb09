"""Global search via ``scipy.optimize.differential_evolution``.

Differential evolution keeps a population of candidate vectors inside
a box and breeds new candidates from scaled differences of existing
ones.  It needs no derivatives, and the starting point only seeds one
member of the initial population, which makes it robust to the flat
or sentinel-valued regions that trip up local methods, at the cost of
many more objective evaluations.

Box and budget
~~~~~~~~~~~~~~
The box is symmetric, ``[−bound, bound]`` in every coordinate, with
``bound = 10`` by default.  On the log and logit scales this covers
means from ``e⁻¹⁰`` to ``e¹⁰`` and inflation probabilities
indistinguishable from 0 and 1.  The generation budget scales with
the dimension: ``maxiter = 200 · k`` unless overridden.  The initial
point, clipped into the box, is passed as ``x0``.

Parallel evaluation
~~~~~~~~~~~~~~~~~~~
Candidates within a generation are independent, so they can be
evaluated in worker processes.  The worker count comes from
:func:`~vinflated_poisson._config.get_workers` unless ``workers`` is
passed explicitly; parallel runs switch to ``updating="deferred"``
(whole-generation updates), which is what makes them parallelisable.

Options
~~~~~~~
``bound`` (scalar half-width) or ``bounds`` (explicit sequence of
pairs) control the box; everything else (``popsize``, ``tol``,
``mutation``, ``recombination``, ``polish``, ``init``, …) is
forwarded to ``differential_evolution``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy.optimize import OptimizeResult, differential_evolution

from .._config import get_workers

if TYPE_CHECKING:
    from .._typing import RandomState

DEFAULT_BOUND = 10.0
"""Default half-width of the search box."""

GENERATIONS_PER_PARAMETER = 200
"""Generation budget per parameter dimension."""


class DifferentialEvolutionStrategy:
    """Seeded differential evolution inside a symmetric box."""

    name = "DE"
    is_global = True

    def __repr__(self) -> str:
        return "DifferentialEvolutionStrategy()"

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
        k = int(np.size(x0))

        bound = float(opts.pop("bound", DEFAULT_BOUND))
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}.")
        bounds = opts.pop("bounds", [(-bound, bound)] * k)
        box = np.asarray(bounds, dtype=float)
        opts.setdefault("x0", np.clip(np.asarray(x0, dtype=float), box[:, 0], box[:, 1]))

        opts.setdefault("maxiter", GENERATIONS_PER_PARAMETER * k)
        workers = opts.setdefault("workers", get_workers())
        if workers != 1:
            opts.setdefault("updating", "deferred")

        return differential_evolution(
            objective,
            bounds,
            args=args,
            seed=random_state,
            **opts,
        )
