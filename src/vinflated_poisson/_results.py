"""Typed result object for a V-inflated Poisson fit.

A frozen dataclass that provides:

* **Attribute access** — ``model.params``, ``model.loglik``, etc.
* **Dict-like access** — ``model["loglik"]``, ``model.get("key")``,
  ``"key" in model`` for consumers that prefer bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.

The result is frozen (immutable after construction) to communicate
that it is a snapshot of a completed fit.  Derived quantities
(standard errors, p-values, information criteria) live in
:mod:`vinflated_poisson.inference` as pure functions of the model.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from ._context import FitContext

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types.

    Handles nested dicts, lists, np.ndarray, np.integer, and
    np.floating so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``     — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``   — membership test
    """

    # Fields to exclude from to_dict() serialisation.
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"context"})

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Runs :func:`_numpy_to_python` on every field value so the
        returned dict is fully JSON-serialisable.
        """
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            result[f.name] = _numpy_to_python(getattr(self, f.name))
        return result


# ------------------------------------------------------------------ #
# FittedModel
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class FittedModel(_DictAccessMixin):
    """Result of :func:`~vinflated_poisson.core.fit_vpoisson`.

    All fields are accessible both as attributes (``model.loglik``)
    and via dict syntax (``model["loglik"]``).
    """

    # ---- Estimates -------------------------------------------------
    params: np.ndarray
    """Estimated parameter vector ``(kx + kz,)``: beta then alpha."""

    param_names: list[str]
    """``P_<Xcol>`` names for beta, then ``V_<Zcol>`` for alpha."""

    loglik: float
    """Weighted log-likelihood at :attr:`params`."""

    # ---- Uncertainty -----------------------------------------------
    covariance: np.ndarray
    """Covariance ``(k, k)``; all NaN when the Hessian was skipped."""

    hessian: np.ndarray | None
    """Hessian of the negative log-likelihood, or ``None``."""

    hessian_repaired: bool
    """Whether the covariance came from a repaired Hessian."""

    # ---- Metadata --------------------------------------------------
    n_obs: int
    """Number of observations ``n``."""

    method: str
    """Canonical optimizer name (e.g. ``"Nelder-Mead"``, ``"DE"``)."""

    start: np.ndarray
    """Initial parameter vector handed to the optimizer."""

    converged: bool
    """Convergence flag reported by the optimizer."""

    n_evaluations: int | None
    """Objective evaluations used, when the optimizer reports it."""

    message: str
    """Optimizer termination message."""

    # ---- Computation context (not serialised) ----------------------
    context: FitContext | None = field(default=None, repr=False, compare=False)
    """The fit context: data and configuration needed to recompute
    predictions and goodness of fit.  Excluded from ``to_dict()``."""

    def __post_init__(self) -> None:
        for name in ("params", "covariance", "start", "hessian"):
            arr = getattr(self, name)
            if isinstance(arr, np.ndarray):
                arr.setflags(write=False)

    # ---- Convenience -----------------------------------------------

    @property
    def n_params(self) -> int:
        return int(self.params.shape[0])

    @property
    def coef(self) -> pd.Series:
        """Estimates as a Series indexed by parameter name."""
        return pd.Series(self.params, index=self.param_names, name="estimate")

    @property
    def beta(self) -> np.ndarray:
        """Mean-model coefficients."""
        kx = sum(name.startswith("P_") for name in self.param_names)
        return self.params[:kx]

    @property
    def alpha(self) -> np.ndarray:
        """Inflation-model coefficients."""
        kx = sum(name.startswith("P_") for name in self.param_names)
        return self.params[kx:]


__all__ = ["FittedModel"]
