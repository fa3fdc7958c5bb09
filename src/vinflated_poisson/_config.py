"""Parallelism configuration for the vinflated_poisson package.

Controls how many worker processes the differential-evolution
strategy uses to evaluate its candidate population.  Local strategies
are sequential and ignore this setting.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_workers`.
    2. The ``VINFLATED_POISSON_WORKERS`` environment variable.
    3. The default of ``1`` (serial evaluation).

``-1`` means "use every available core" (the
``scipy.optimize.differential_evolution`` convention).

Examples:
    Evaluate populations on four processes from the shell::

        export VINFLATED_POISSON_WORKERS=4

    Or programmatically::

        import vinflated_poisson
        vinflated_poisson.set_workers(4)

    Restore the default resolution order::

        vinflated_poisson.set_workers(None)
"""

from __future__ import annotations

import os

_ENV_VAR = "VINFLATED_POISSON_WORKERS"
_DEFAULT_WORKERS = 1

# Sentinel indicating "no programmatic override has been set".
_workers_override: int | None = None


def _validate_workers(value: int, source: str) -> int:
    """Return *value* if it is a valid worker count, else raise."""
    if value == 0 or value < -1:
        raise ValueError(
            f"Invalid worker count {value} from {source}. "
            f"Use a positive integer or -1 for all cores."
        )
    return value


def get_workers() -> int:
    """Return the active worker count for population-based optimisers.

    Resolution order:
        1. Value set by :func:`set_workers`.
        2. ``VINFLATED_POISSON_WORKERS`` environment variable.
        3. ``1``.

    Returns:
        A positive integer, or ``-1`` for all cores.

    Raises:
        ValueError: If the environment variable is not an integer or
            names an invalid worker count.
    """
    # 1. Programmatic override
    if _workers_override is not None:
        return _workers_override

    # 2. Environment variable
    env = os.environ.get(_ENV_VAR, "").strip()
    if env:
        try:
            value = int(env)
        except ValueError:
            raise ValueError(
                f"{_ENV_VAR} must be an integer, got '{env}'."
            ) from None
        return _validate_workers(value, _ENV_VAR)

    # 3. Default
    return _DEFAULT_WORKERS


def set_workers(n: int | None) -> None:
    """Override the worker count.

    Args:
        n: A positive integer, ``-1`` for all cores, or ``None`` to
            restore the default resolution order.

    Raises:
        ValueError: If *n* is not a valid worker count.
    """
    global _workers_override
    if n is None:
        _workers_override = None
        return
    _workers_override = _validate_workers(int(n), "set_workers()")
