"""Link functions for the inflation-probability model.

The inflation probability ``phi`` lives in ``(0, 1)``, so its linear
predictor is mapped through the inverse of a CDF-type link.  The links
themselves come from ``statsmodels.genmod.families.links``; this
module only maintains a name registry so that callers can select a
link by string, mirroring the way model families are resolved by name.

Registered names:

==========  =============================================
``logit``   logistic CDF (default)
``probit``  standard normal CDF
``cloglog`` complementary log-log, ``1 - exp(-exp(eta))``
``loglog``  log-log, ``exp(-exp(-eta))``
``cauchit`` standard Cauchy CDF
==========  =============================================

New links are added with :func:`register_link`.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from statsmodels.genmod.families import links as sm_links

_PHI_EPS = float(np.finfo(float).eps)

_LINKS: dict[str, Callable[[], sm_links.Link]] = {
    "logit": sm_links.Logit,
    "probit": sm_links.Probit,
    "cloglog": sm_links.CLogLog,
    "loglog": sm_links.LogLog,
    "cauchit": sm_links.Cauchy,
}
"""Registry mapping link names to statsmodels link factories."""


def register_link(name: str, factory: Callable[[], sm_links.Link]) -> None:
    """Register a link factory under *name*.

    Args:
        name: Lookup key (stored lower-case).
        factory: Zero-argument callable returning a statsmodels
            ``Link`` whose ``inverse`` maps the real line into
            ``(0, 1)``.

    Raises:
        ValueError: If *name* is empty.
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("Link name must be a non-empty string.")
    _LINKS[key] = factory


def resolve_link(link: str | sm_links.Link) -> tuple[str, sm_links.Link]:
    """Return ``(canonical_name, link_instance)`` for *link*.

    Args:
        link: A registered name (case-insensitive) or a statsmodels
            ``Link`` instance, which is passed through.

    Raises:
        ValueError: If *link* is an unknown name.
        TypeError: If *link* is neither a string nor a ``Link``.
    """
    if isinstance(link, sm_links.Link):
        return type(link).__name__.lower(), link
    if not isinstance(link, str):
        raise TypeError(
            f"link must be a string or a statsmodels Link, got {type(link).__name__}."
        )

    key = link.strip().lower()
    if key not in _LINKS:
        available = ", ".join(sorted(_LINKS))
        raise ValueError(f"Unknown link {link!r}.  Available links: {available}.")
    return key, _LINKS[key]()


def available_links() -> list[str]:
    """Return the sorted registered link names."""
    return sorted(_LINKS)


def inflation_probability(link: sm_links.Link, eta: np.ndarray) -> np.ndarray:
    """Map *eta* through ``link.inverse`` and keep the result in ``(0, 1)``.

    CDF-type inverses saturate in floating point (``cloglog`` returns
    exactly 1.0 from ``eta ≈ 3.6``), which would turn ``log(1 − phi)``
    into ``-inf``.  Values are clipped to ``[eps, 1 − eps]``.
    """
    phi = np.asarray(link.inverse(eta), dtype=float)
    return np.clip(phi, _PHI_EPS, 1.0 - _PHI_EPS)


__all__ = ["available_links", "inflation_probability", "register_link", "resolve_link"]
