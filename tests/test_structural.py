"""
Test Suite for structural equation modeling and the OLS solver behind it.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from api.requests import CausalData
from config import METHOD_GRANGER, METHOD_PC
from engine.causal import new_relationship
from engine.dataset import CausalDataset
from engine.structural import build_equation, build_structural_models, fit_ols, model_fit_statistics
from engine.structural.modeling import INTERCEPT

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _dataset(rows):
    return CausalDataset.from_samples([
        CausalData(timestamp=NOW + timedelta(minutes=i), variables=row) for i, row in enumerate(rows)
    ])


def _line_dataset(n=40):
    rows = []
    for i in range(n):
        x = float(i) / 2.0
        rows.append({"x": x, "y": 2.0 * x + 5.0 + 0.1 * np.sin(i * 1.7), "z": np.cos(i * 0.9)})
    return _dataset(rows)


def test_regression_recovers_line():
    eq = build_equation(_line_dataset(), "y", ["x"])
    assert eq is not None
    assert [t.variable for t in eq.terms] == [INTERCEPT, "x"]
    assert eq.coefficient("x") == pytest.approx(2.0, abs=0.3)
    assert eq.coefficient(INTERCEPT) == pytest.approx(5.0, abs=0.3)
    assert eq.r_squared > 0.9
    assert eq.sample_count == 40
    assert set(eq.goodness_of_fit) == {"AIC", "BIC", "RMSE"}


def test_term_statistics_are_consistent():
    eq = build_equation(_line_dataset(), "y", ["x"])
    slope = eq.terms[1]
    lo, hi = slope.confidence_interval
    assert lo < slope.coefficient < hi
    assert hi - lo == pytest.approx(2 * 1.96 * slope.standard_error)
    assert slope.p_value < 0.001


def test_collinear_design_falls_back_to_least_squares():
    x = np.arange(20, dtype=float)
    X = np.column_stack([x, 2.0 * x])
    fit = fit_ols(X, 3.0 * x + 1.0)
    assert fit is not None
    assert fit.used_fallback
    assert np.all(np.isfinite(fit.coefficients))
    assert fit.r_squared == pytest.approx(1.0)


def test_fit_rejects_mismatched_input():
    assert fit_ols(np.ones((3, 1)), np.ones(4)) is None
    assert fit_ols(np.ones((0, 1)), np.ones(0)) is None


def test_adjusted_r_squared_only_penalised_with_spare_samples():
    fit = fit_ols(np.array([[1.0], [2.0]]), np.array([1.0, 3.0]))
    assert fit.adjusted_r_squared == fit.r_squared


def test_models_group_causes_by_effect():
    rels = [
        new_relationship("x", "y", 0.9, 0.9, METHOD_PC, NOW),
        new_relationship("z", "y", 0.4, 0.4, METHOD_PC, NOW),
        new_relationship("x", "y", 0.5, 0.5, METHOD_GRANGER, NOW),
    ]
    result = build_structural_models(_line_dataset(), rels)
    assert len(result.equations) == 1
    eq = result.equations[0]
    assert [t.variable for t in eq.terms] == [INTERCEPT, "x", "z"]
    assert result.model_statistics["EquationCount"] == 1.0
    assert result.model_statistics["TotalParameters"] == 3.0
    assert result.model_statistics["OverallFit"] == pytest.approx(eq.adjusted_r_squared)
    assert result.converged
    assert result.assumptions


def test_empty_model_has_zero_fit():
    result = build_structural_models(_line_dataset(), [])
    assert result.equations == []
    assert model_fit_statistics([]) == {"OverallFit": 0.0}


def test_failing_equation_is_skipped(monkeypatch, caplog):
    from engine.structural import modeling

    real = modeling.build_equation

    def _build(dataset, dependent, causes):
        if dependent == "z":
            raise np.linalg.LinAlgError("SVD did not converge")
        return real(dataset, dependent, causes)

    monkeypatch.setattr(modeling, "build_equation", _build)
    rels = [
        new_relationship("x", "y", 0.9, 0.9, METHOD_PC, NOW),
        new_relationship("x", "z", 0.6, 0.6, METHOD_PC, NOW),
    ]
    with caplog.at_level("WARNING", logger="engine.structural.modeling"):
        result = build_structural_models(_line_dataset(), rels)
    assert [e.dependent_variable for e in result.equations] == ["y"]
    assert result.model_statistics["EquationCount"] == 1.0
    assert any("skipping equation for z" in r.getMessage() for r in caplog.records)
