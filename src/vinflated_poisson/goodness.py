"""Observed versus model-implied count distributions.

For every count ``c`` in the evaluated range the table pairs

* the **observed** mass: the fraction of observations equal to ``c``;
* the **expected** mass: the model probability of ``c`` averaged over
  observations, each evaluated at its own covariate-implied
  ``mu_i`` and ``phi_i``.

The expected mass uses exactly the mixture and truncation logic of the
likelihood (:func:`~vinflated_poisson.likelihood.vpoisson_pmf`), in
probability space and averaged rather than summed.  The range is
``0..max`` for the untruncated model and ``1..max`` for the truncated
one; ``max`` defaults to the largest observed count.  The last row
collects ``max`` *or more* on both sides: observations ``y >= max``
and the model's upper-tail mass ``P(Y > max)``.  Both columns
therefore sum to one for any ``max``.

The evaluator does not rank models.  :func:`gof_distance` collapses a
table to a single number for callers that want to compare fits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from scipy import stats

from .likelihood import linear_predictors, vpoisson_pmf

if TYPE_CHECKING:
    from ._results import FittedModel


def goodness_of_fit(model: FittedModel, max_count: int | None = None) -> pd.DataFrame:
    """Tabulate observed and expected count probabilities.

    Args:
        model: A fitted model carrying its fit context.
        max_count: Largest count to evaluate; its row also holds all
            larger counts.  Defaults to the largest observed count.

    Returns:
        DataFrame with integer column ``count`` and float columns
        ``observed`` and ``expected``.

    Raises:
        ValueError: If the model has no context or *max_count* is
            below the first count of the range.
    """
    context = model.context
    if context is None:
        raise ValueError("goodness_of_fit requires a model that carries its fit context.")

    lowest = 1 if context.truncate else 0
    if max_count is None:
        max_count = int(context.y.max())
    if max_count < lowest:
        raise ValueError(
            f"max_count must be >= {lowest} for "
            f"{'a truncated' if context.truncate else 'an untruncated'} model, got {max_count}."
        )

    counts = np.arange(lowest, int(max_count) + 1)
    top = counts[-1]
    observed = np.array([np.mean(context.y == c) for c in counts])
    # Last row reads "max or more" on both sides.
    observed[-1] = np.mean(context.y >= top)

    mu, phi = linear_predictors(model.params, context)
    probs = vpoisson_pmf(counts, mu, phi, context.V, context.truncate)
    probs[:, -1] += _upper_tail(top, mu, phi, context.V, context.truncate)
    expected = probs.mean(axis=0)

    return pd.DataFrame({"count": counts, "observed": observed, "expected": expected})


def _upper_tail(
    top: int,
    mu: np.ndarray,
    phi: np.ndarray,
    V: int,
    truncate: bool,
) -> np.ndarray:
    """Per-observation model probability ``P(Y > top)``."""
    tail = stats.poisson.sf(top, mu)
    if truncate:
        tail = tail / -np.expm1(-mu)
    return (1.0 - phi) * tail + phi * float(V > top)


def gof_distance(table: pd.DataFrame) -> float:
    """Sum of absolute deviations between observed and expected mass."""
    return float(np.sum(np.abs(table["observed"].to_numpy() - table["expected"].to_numpy())))


__all__ = ["gof_distance", "goodness_of_fit"]
