"""Parameter covariance from the curvature of the negative log-likelihood.

The asymptotic covariance of the maximum-likelihood estimate is the
inverse of the observed information, i.e. of the Hessian of the
negative log-likelihood at the optimum.  A numerical Hessian is not
always a valid precision matrix: near-collinear columns make it
singular, and an optimiser that stopped slightly short of the optimum
can leave it indefinite.

Inversion therefore goes through :func:`invert_or_repair`:

1. **Direct inversion** via a Cholesky factorisation.  Success implies
   the matrix is positive definite, so the inverse is a valid
   covariance.
2. **Repair** on failure: :func:`nearest_positive_definite` projects
   the matrix onto the positive-definite cone by clipping its
   eigenvalues to a small positive floor, and the projection is
   inverted instead.  The floor is strictly positive, so this step
   cannot fail.

Reference:
    Higham, N. J. (1988). Computing a nearest symmetric positive
    semidefinite matrix. *Linear Algebra and its Applications*, 103,
    103–118.
"""

from __future__ import annotations

import logging
import warnings

import numpy as np
from scipy import linalg

logger = logging.getLogger(__name__)


def _symmetrize(matrix: np.ndarray) -> np.ndarray:
    return 0.5 * (matrix + matrix.T)


def _require_square(matrix: np.ndarray) -> np.ndarray:
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {arr.shape}.")
    return arr


def nearest_positive_definite(matrix: np.ndarray, eig_tol: float = 1e-8) -> np.ndarray:
    """Project *matrix* onto the symmetric positive-definite cone.

    Eigenvalues below ``eig_tol * max(|λ|)`` are raised to that floor
    (to ``eig_tol`` itself for an all-zero matrix).  Non-finite
    entries are treated as zero.  A matrix whose eigenvalues already
    clear the floor is returned unchanged up to rounding.

    Args:
        matrix: Square matrix ``(k, k)``.
        eig_tol: Relative eigenvalue floor.

    Returns:
        Symmetric positive-definite matrix ``(k, k)``.

    Raises:
        ValueError: If *matrix* is not square.
    """
    arr = _require_square(matrix)
    if arr.size == 0:
        return arr.copy()
    arr = _symmetrize(np.where(np.isfinite(arr), arr, 0.0))

    eigvals, eigvecs = np.linalg.eigh(arr)
    scale = float(np.max(np.abs(eigvals)))
    floor = eig_tol * scale if scale > 0 else eig_tol
    clipped = np.maximum(eigvals, floor)

    return _symmetrize((eigvecs * clipped) @ eigvecs.T)


def invert_or_repair(matrix: np.ndarray) -> tuple[np.ndarray, bool]:
    """Invert *matrix*, repairing it first if it is not positive definite.

    Returns:
        ``(inverse, repaired)`` where *repaired* is ``True`` when the
        nearest positive-definite projection was inverted instead of
        the input.  The inverse is symmetric.

    Raises:
        ValueError: If *matrix* is not square.
    """
    arr = _require_square(matrix)
    identity = np.eye(arr.shape[0])

    if np.all(np.isfinite(arr)):
        try:
            factor = linalg.cho_factor(_symmetrize(arr))
            inverse = linalg.cho_solve(factor, identity)
            if np.all(np.isfinite(inverse)):
                return _symmetrize(inverse), False
        except linalg.LinAlgError:
            pass  # not positive definite: repair below

    repaired = nearest_positive_definite(arr)
    factor = linalg.cho_factor(repaired)
    return _symmetrize(linalg.cho_solve(factor, identity)), True


def covariance_from_hessian(
    hessian: np.ndarray | None,
    n_params: int,
) -> tuple[np.ndarray, bool]:
    """Covariance of the estimates from the negative log-likelihood Hessian.

    Args:
        hessian: Hessian ``(k, k)`` at the optimum, or ``None`` when
            it was not computed.
        n_params: ``k``; sizes the placeholder when *hessian* is
            ``None``.

    Returns:
        ``(covariance, repaired)``.  Without a Hessian the covariance
        is a ``(k, k)`` matrix of NaN ("unknown") and *repaired* is
        ``False``.
    """
    if hessian is None:
        return np.full((n_params, n_params), np.nan), False

    covariance, repaired = invert_or_repair(hessian)
    if repaired:
        eigvals = np.linalg.eigvalsh(_symmetrize(np.nan_to_num(np.asarray(hessian, dtype=float))))
        logger.debug(
            "Hessian repaired before inversion (smallest eigenvalue %.3e).",
            float(eigvals.min()) if eigvals.size else float("nan"),
        )
        warnings.warn(
            "The Hessian is singular or not positive definite; the covariance "
            "was computed from its nearest positive-definite approximation.  "
            "Standard errors may be unreliable (check for collinear columns).",
            UserWarning,
            stacklevel=2,
        )
    return covariance, repaired


__all__ = [
    "covariance_from_hessian",
    "invert_or_repair",
    "nearest_positive_definite",
]
