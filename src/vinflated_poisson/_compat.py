"""Input compatibility layer for optional Polars support.

The public API accepts NumPy arrays and pandas objects.  This module
adds transparent support for Polars: when a user passes a
``polars.DataFrame``, ``polars.LazyFrame`` or ``polars.Series`` it is
converted to its pandas counterpart at the boundary so that internal
code, which operates on NumPy arrays extracted from pandas, remains
unchanged.

Polars is **not** a required dependency.  If it is not installed, the
converters simply pass NumPy and pandas objects through.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeAlias

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = np.ndarray | pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = np.ndarray | pd.DataFrame

# Runtime detection, so Polars stays optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "input") -> pd.DataFrame:
    """Convert a design matrix to a :class:`pandas.DataFrame`.

    Accepted types:
        * ``pandas.DataFrame`` — returned as-is.
        * ``pandas.Series`` — promoted to a one-column frame.
        * ``numpy.ndarray`` (1-D or 2-D) — columns named
          ``<name>1``, ``<name>2``, ... in lower case.
        * ``polars.DataFrame`` — converted via ``.to_pandas()``.
        * ``polars.LazyFrame`` — collected then converted.

    Args:
        obj: The design matrix.
        name: Label used for generated column names and in error
            messages (e.g. ``"X"`` or ``"Z"``).

    Returns:
        A pandas ``DataFrame``.

    Raises:
        TypeError: If *obj* is not a recognised matrix type.
        ValueError: If a NumPy input has more than two dimensions.
    """
    if isinstance(obj, pd.DataFrame):
        return obj
    if isinstance(obj, pd.Series):
        return obj.to_frame(name=obj.name if obj.name is not None else f"{name.lower()}1")

    if isinstance(obj, np.ndarray):
        arr = obj.reshape(-1, 1) if obj.ndim == 1 else obj
        if arr.ndim != 2:
            raise ValueError(f"'{name}' must be 1-D or 2-D, got {obj.ndim} dimensions.")
        columns = [f"{name.lower()}{j + 1}" for j in range(arr.shape[1])]
        return pd.DataFrame(arr, columns=columns)

    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            return obj.collect().to_pandas()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()

    raise TypeError(
        f"'{name}' must be a NumPy array or pandas DataFrame"
        + (" or Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
        + f", got {type(obj).__name__}."
    )


def _ensure_1d(obj: Any, *, name: str = "input") -> np.ndarray:
    """Convert a vector-like input to a 1-D NumPy array.

    Scalars become length-1 arrays (broadcasting is the caller's job).
    Single-column frames are flattened; wider frames are rejected.

    Raises:
        ValueError: If *obj* has more than one column.
    """
    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            obj = obj.collect()
        if isinstance(obj, (pl.DataFrame, pl.Series)):
            obj = obj.to_pandas()

    if isinstance(obj, pd.DataFrame):
        if obj.shape[1] != 1:
            raise ValueError(
                f"'{name}' must have exactly one column, got {obj.shape[1]}."
            )
        return obj.iloc[:, 0].to_numpy()
    if isinstance(obj, pd.Series):
        return obj.to_numpy()

    arr = np.asarray(obj)
    if arr.ndim == 2 and arr.shape[1] == 1:
        return arr[:, 0]
    if arr.ndim > 1:
        raise ValueError(f"'{name}' must be one-dimensional, got shape {arr.shape}.")
    return np.atleast_1d(arr)
