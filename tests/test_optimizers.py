"""Tests for the optimizer registry, strategies and dispatcher."""

import os

import numpy as np
import pytest
from scipy.optimize import OptimizeResult

from vinflated_poisson import _optimizers
from vinflated_poisson._context import build_context
from vinflated_poisson._optimizers import (
    OptimizerStrategy,
    available_optimizers,
    register_optimizer,
    resolve_optimizer,
    run_optimizer,
)
from vinflated_poisson._optimizers.annealing import AnnealingStrategy
from vinflated_poisson._optimizers.evolution import (
    DEFAULT_BOUND,
    GENERATIONS_PER_PARAMETER,
    DifferentialEvolutionStrategy,
)
from vinflated_poisson._optimizers.local import LOCAL_METHODS, LocalStrategy


def _quadratic(x, center):
    return float(np.sum((x - center) ** 2))


def _inflated_counts(n=300, lam=2.0, phi=0.4, V=2, seed=7):
    rng = np.random.default_rng(seed)
    y = rng.poisson(lam, size=n)
    y[rng.random(n) < phi] = V
    return y


@pytest.fixture(autouse=True)
def _serial_workers():
    import vinflated_poisson._config as _cfg
    _cfg._workers_override = None
    os.environ.pop("VINFLATED_POISSON_WORKERS", None)
    yield
    _cfg._workers_override = None


class TestRegistry:
    def teardown_method(self):
        _optimizers._OPTIMIZER_REGISTRY.pop("my_method", None)

    @pytest.mark.parametrize("method", LOCAL_METHODS)
    def test_local_methods_registered(self, method):
        strategy = resolve_optimizer(method)
        assert isinstance(strategy, LocalStrategy)
        assert strategy.name == method

    def test_case_insensitive(self):
        assert resolve_optimizer("nelder-mead").name == "Nelder-Mead"

    @pytest.mark.parametrize("method", ["SANN", "basinhopping"])
    def test_annealing_aliases(self, method):
        assert isinstance(resolve_optimizer(method), AnnealingStrategy)

    @pytest.mark.parametrize("method", ["DE", "differential_evolution"])
    def test_evolution_aliases(self, method):
        strategy = resolve_optimizer(method)
        assert isinstance(strategy, DifferentialEvolutionStrategy)
        assert strategy.is_global is True

    def test_invalid_method(self):
        with pytest.raises(ValueError, match="Invalid method 'newton'"):
            resolve_optimizer("newton")

    def test_strategies_satisfy_protocol(self):
        for name in ("Nelder-Mead", "SANN", "DE"):
            assert isinstance(resolve_optimizer(name), OptimizerStrategy)

    def test_register_custom(self):
        register_optimizer("My_Method", lambda: LocalStrategy("Powell"))
        assert "my_method" in available_optimizers()
        assert resolve_optimizer("MY_METHOD").name == "Powell"

    def test_register_empty_name(self):
        with pytest.raises(ValueError, match="non-empty"):
            register_optimizer("", LocalStrategy)

    def test_unknown_local_method(self):
        with pytest.raises(ValueError, match="Unknown local method"):
            LocalStrategy("trust-constr")


class TestStrategiesOnQuadratic:
    center = np.array([1.0, -2.0])

    def test_local(self):
        res = LocalStrategy("Nelder-Mead").minimize(
            _quadratic, np.zeros(2), args=(self.center,)
        )
        assert res.success
        np.testing.assert_allclose(res.x, self.center, atol=1e-4)

    def test_local_caller_options_override_defaults(self):
        res = LocalStrategy("Nelder-Mead").minimize(
            _quadratic, np.zeros(2), args=(self.center,), options={"maxiter": 1}
        )
        assert not res.success

    def test_annealing(self):
        res = AnnealingStrategy().minimize(
            _quadratic,
            np.zeros(2),
            args=(self.center,),
            options={"niter": 5},
            random_state=0,
        )
        np.testing.assert_allclose(res.x, self.center, atol=1e-4)

    def test_evolution(self):
        res = DifferentialEvolutionStrategy().minimize(
            _quadratic, np.zeros(2), args=(self.center,), random_state=0
        )
        assert res.success
        np.testing.assert_allclose(res.x, self.center, atol=1e-4)

    def test_evolution_rejects_non_positive_bound(self):
        with pytest.raises(ValueError, match="bound must be positive"):
            DifferentialEvolutionStrategy().minimize(
                _quadratic, np.zeros(2), args=(self.center,), options={"bound": 0}
            )


class TestEvolutionConfiguration:
    """The DE strategy fills in the box, budget and worker count."""

    def _capture(self, monkeypatch):
        captured = {}

        def fake_de(func, bounds, **kwargs):
            captured["bounds"] = bounds
            captured.update(kwargs)
            return OptimizeResult(x=np.zeros(len(bounds)), fun=0.0, success=True, message="ok")

        monkeypatch.setattr(
            "vinflated_poisson._optimizers.evolution.differential_evolution", fake_de
        )
        return captured

    def test_defaults(self, monkeypatch):
        captured = self._capture(monkeypatch)
        DifferentialEvolutionStrategy().minimize(_quadratic, np.zeros(3), random_state=5)
        assert captured["bounds"] == [(-DEFAULT_BOUND, DEFAULT_BOUND)] * 3
        assert captured["maxiter"] == GENERATIONS_PER_PARAMETER * 3
        assert captured["workers"] == 1
        assert captured["seed"] == 5
        assert "updating" not in captured

    def test_workers_from_config(self, monkeypatch):
        from vinflated_poisson import set_workers

        captured = self._capture(monkeypatch)
        set_workers(3)
        DifferentialEvolutionStrategy().minimize(_quadratic, np.zeros(2))
        assert captured["workers"] == 3
        assert captured["updating"] == "deferred"

    def test_custom_bound(self, monkeypatch):
        captured = self._capture(monkeypatch)
        DifferentialEvolutionStrategy().minimize(
            _quadratic, np.zeros(2), options={"bound": 3.0, "maxiter": 7}
        )
        assert captured["bounds"] == [(-3.0, 3.0)] * 2
        assert captured["maxiter"] == 7

    def test_initial_point_seeds_population(self, monkeypatch):
        captured = self._capture(monkeypatch)
        DifferentialEvolutionStrategy().minimize(
            _quadratic, np.array([0.5, -25.0]), options={"bound": 4.0}
        )
        np.testing.assert_array_equal(captured["x0"], [0.5, -4.0])


class TestRunOptimizer:
    def test_returns_outcome(self):
        ctx = build_context(_inflated_counts(), V=2)
        outcome = run_optimizer(ctx)
        assert outcome.params.shape == (2,)
        assert outcome.hessian.shape == (2, 2)
        assert outcome.strategy.name == "Nelder-Mead"
        assert np.isfinite(outcome.loglik)

    def test_hessian_skipped(self):
        ctx = build_context(_inflated_counts(), V=2)
        outcome = run_optimizer(ctx, hessian=False)
        assert outcome.hessian is None

    def test_hessian_positive_definite_at_optimum(self):
        ctx = build_context(_inflated_counts(), V=2)
        outcome = run_optimizer(ctx)
        assert np.all(np.linalg.eigvalsh(outcome.hessian) > 0)

    def test_wrong_start_length(self):
        ctx = build_context(_inflated_counts(), V=2)
        with pytest.raises(ValueError, match="start must have length 2"):
            run_optimizer(ctx, start=np.zeros(3))

    def test_unknown_method(self):
        ctx = build_context(_inflated_counts(), V=2)
        with pytest.raises(ValueError, match="Invalid method"):
            run_optimizer(ctx, method="simplex")

    def test_non_convergence_raises(self):
        ctx = build_context(_inflated_counts(), V=2)
        with pytest.raises(RuntimeError, match="failed to converge"):
            run_optimizer(ctx, options={"maxiter": 1})

    def test_de_reproducible_with_seed(self):
        ctx = build_context(_inflated_counts(n=200), V=2)
        first = run_optimizer(ctx, method="DE", hessian=False, random_state=11)
        second = run_optimizer(ctx, method="DE", hessian=False, random_state=11)
        np.testing.assert_array_equal(first.params, second.params)

    def test_local_methods_agree(self):
        ctx = build_context(_inflated_counts(), V=2)
        nm = run_optimizer(ctx, method="Nelder-Mead", hessian=False)
        powell = run_optimizer(
            ctx, method="Powell", hessian=False, options={"xtol": 1e-8, "ftol": 1e-12}
        )
        np.testing.assert_allclose(nm.params, powell.params, atol=1e-3)
        assert nm.loglik == pytest.approx(powell.loglik, abs=1e-4)
