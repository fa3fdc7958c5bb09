"""Formatted ASCII table display for fitted models.

These tables mirror the statsmodels summary style: a header panel
with model-level quantities (log-likelihood, information criteria,
inflation configuration) above a coefficient panel with Wald
statistics for the mean-model (``P_``) and inflation-model (``V_``)
parameters.
"""

from __future__ import annotations

import math
import textwrap
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from .inference import aic, bic, coef_table, confidence_intervals

if TYPE_CHECKING:
    from ._results import FittedModel

W = 80


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _fmt_num(val: float, width: int = 10, digits: int = 4) -> str:
    """Right-align a number, rendering NaN as ``'N/A'``."""
    if val is None or (isinstance(val, float) and math.isnan(val)):
        return f"{'N/A':>{width}}"
    return f"{val:>{width}.{digits}f}"


def _fmt_p(p: float) -> str:
    """Format a p-value: scientific notation if tiny, 4 dp otherwise."""
    if p is None or math.isnan(p):
        return "N/A"
    if p < 0.0001:
        return f"{p:.2e}"
    return f"{p:.4f}"


def _significance_stars(p: float) -> str:
    if p is None or math.isnan(p):
        return ""
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    return ""


def _title(title: str) -> None:
    print("=" * W)
    for line in textwrap.wrap(title, width=W - 2):
        print(f"{line:^{W}}")
    print("=" * W)


def print_fit_table(
    model: FittedModel,
    *,
    confidence_level: float | None = None,
    title: str = "V-Inflated Poisson Regression Results",
) -> None:
    """Print a fitted model as a formatted ASCII table.

    Args:
        model: The fitted model.
        confidence_level: When given (e.g. ``0.95``), append a panel
            of normal-theory confidence intervals.
        title: Title for the output table.
    """
    ctx = model.context
    col1 = 40
    col2 = 38

    _title(title)

    model_label = "Truncated" if ctx is not None and ctx.truncate else "Untruncated"
    v_str = str(ctx.V) if ctx is not None else "N/A"
    link_str = ctx.link_name if ctx is not None else "N/A"
    rows = [
        ("Model:", model_label, "No. Observations:", f"{model.n_obs:>10}"),
        ("Inflated V:", v_str, "Log-Likelihood:", _fmt_num(model.loglik)),
        ("Inflation Link:", link_str, "AIC:", _fmt_num(aic(model))),
        ("Optimizer:", model.method, "BIC:", _fmt_num(bic(model))),
    ]
    for ll, lv, rl, rv in rows:
        print(f"{ll:<16}{lv:<{col1 - 16}}{rl:>{col2 - 11}} {rv:>10}")

    print("-" * W)

    # ── Coefficient panel (W = 80 chars) ──────────────────────── #
    #
    #   Parameter (fc=28, left) | Estimate (10) | Std.Err (10)
    #   | z (9) | P>|z| (12) | stars
    fc = 28
    print(f"{'Parameter':<{fc}}{'Estimate':>10}{'Std.Err':>10}{'z':>9}{'P>|z|':>12}")
    print("-" * W)

    table = coef_table(model)
    current_block = None
    for name, row in table.iterrows():
        block = str(name)[:2]
        if current_block is not None and block != current_block:
            print()
        current_block = block
        print(
            f"{_truncate(str(name), fc):<{fc}}"
            f"{_fmt_num(row['estimate'])}"
            f"{_fmt_num(row['std_error'])}"
            f"{_fmt_num(row['z_value'], width=9, digits=3)}"
            f"{_fmt_p(row['p_value']):>12}"
            f" {_significance_stars(row['p_value'])}"
        )

    if confidence_level is not None:
        ci = confidence_intervals(model, level=confidence_level)
        pct = f"{confidence_level * 100:g}%"
        print("-" * W)
        print(f"{'Parameter':<{fc}}{pct + ' Lower':>14}{pct + ' Upper':>14}")
        for name, row in ci.iterrows():
            print(
                f"{_truncate(str(name), fc):<{fc}}"
                f"{_fmt_num(row['lower'], width=14)}"
                f"{_fmt_num(row['upper'], width=14)}"
            )

    notes: list[str] = []
    if not np.all(np.isfinite(np.diag(np.asarray(model.covariance)))):
        notes.append(
            "Covariance unavailable (hessian=False or non-finite Hessian); "
            "standard errors and p-values are reported as N/A."
        )
    if model.hessian_repaired:
        notes.append(
            "The Hessian was not positive definite and was replaced by its "
            "nearest positive-definite approximation before inversion."
        )
    if notes:
        print("-" * W)
        print("Notes")
        print("-" * W)
        for note in notes:
            print(textwrap.fill(f"  [!] {note}", width=W, subsequent_indent=" " * 6))

    print("=" * W)
    print("(***) p < 0.001   (**) p < 0.01   (*) p < 0.05")
    print()


def print_gof_table(
    table: pd.DataFrame,
    *,
    title: str = "Goodness of Fit: Observed vs Expected",
) -> None:
    """Print a goodness-of-fit table from :func:`~vinflated_poisson.goodness.goodness_of_fit`."""
    _title(title)
    print(f"{'Count':>8}{'Observed':>14}{'Expected':>14}{'Difference':>14}")
    print("-" * W)
    last = len(table) - 1
    for i, (_, row) in enumerate(table.iterrows()):
        diff = row["observed"] - row["expected"]
        label = f"{int(row['count'])}+" if i == last else str(int(row["count"]))
        print(
            f"{label:>8}"
            f"{row['observed']:>14.4f}"
            f"{row['expected']:>14.4f}"
            f"{diff:>+14.4f}"
        )
    print("-" * W)
    total_obs = float(table["observed"].sum())
    total_exp = float(table["expected"].sum())
    abs_dev = float(np.sum(np.abs(table["observed"] - table["expected"])))
    print(f"{'Total':>8}{total_obs:>14.4f}{total_exp:>14.4f}")
    print(f"  {'Sum |Observed - Expected|:':<30}{abs_dev:.4f}")
    print("=" * W)
    print()


__all__ = ["print_fit_table", "print_gof_table"]
