"""
Test Suite for intervention analysis.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import datetime, timezone

import numpy as np
import pytest

from api.requests import CausalAnalysisConfig
from config import METHOD_PC
from engine.causal import new_relationship
from engine.enums import InterventionType
from engine.intervention import analyze_interventions, direct_effect, effects_for_relationship, intervention_values
from engine.intervention.effects import classify, counterfactual_effect, effect_probability, intervention_metrics

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _pair(n=40):
    cause = np.linspace(0.0, 10.0, n)
    effect = 3.0 * cause + 0.2 * np.sin(np.arange(n) * 1.1)
    return cause, effect


def test_direct_effect_is_slope_times_shift():
    cause, effect = _pair()
    at_mean = direct_effect(cause, effect, float(np.mean(cause)))
    assert at_mean == pytest.approx(0.0, abs=1e-9)
    assert direct_effect(cause, effect, float(np.mean(cause)) + 1.0) == pytest.approx(3.0, abs=0.05)
    assert direct_effect(np.ones(5), np.arange(5.0), 2.0) == 0.0


def test_counterfactual_uses_nearest_neighbours():
    cause, effect = _pair()
    cf = counterfactual_effect(cause, effect, 10.0)
    assert cf > 0
    assert counterfactual_effect(cause[:3], effect[:3], 1.0) == 0.0


def test_intervention_values_stay_in_observed_range():
    cause, _ = _pair()
    values = intervention_values(cause)
    assert len(values) == len(set(values))
    assert min(values) >= cause.min()
    assert max(values) <= cause.max() + 0.2 * abs(cause.max())
    assert cause.min() in values and cause.max() in values


def test_probability_and_classification():
    assert effect_probability(1.0, 0.5, 1.5) == 1.0
    assert effect_probability(0.2, -0.5, 1.5) == pytest.approx(0.05)
    assert effect_probability(1.0, 1.0, 1.0) == 0.5
    cause, _ = _pair()
    assert classify(cause.min(), cause) == InterventionType.decrease
    assert classify(cause.max(), cause) == InterventionType.increase
    assert classify(float(np.mean(cause)), cause) == InterventionType.moderate


def test_effects_are_deterministic_and_bounded():
    cause, effect = _pair()
    rel = new_relationship("c", "e", 0.9, 0.9, METHOD_PC, NOW)
    config = CausalAnalysisConfig()
    first = effects_for_relationship(rel, cause, effect, config)
    second = effects_for_relationship(rel, cause, effect, config)
    assert first and [e.model_dump() for e in first] == [e.model_dump() for e in second]
    for e in first:
        assert abs(e.expected_effect) > config.intervention_effect_threshold
        assert 0.0 <= e.probability <= 1.0
        lo, hi = e.confidence_interval
        assert lo <= hi
        assert set(e.sensitivity) == {
            "SampleSizeSensitivity", "OutlierSensitivity", "InterventionValueSensitivity",
        }
        assert e.relationship_id == rel.id


def test_too_few_samples_are_omitted():
    cause, effect = _pair(5)
    rel = new_relationship("c", "e", 0.9, 0.9, METHOD_PC, NOW)
    assert effects_for_relationship(rel, cause, effect, CausalAnalysisConfig()) is None


def test_metrics_for_empty_and_populated_effects():
    empty = intervention_metrics([])
    assert empty["AverageEffect"] == 0.0 and len(empty) == 7
    cause, effect = _pair()
    rel = new_relationship("c", "e", 0.9, 0.9, METHOD_PC, NOW)
    effects = effects_for_relationship(rel, cause, effect, CausalAnalysisConfig())
    metrics = intervention_metrics(effects)
    assert metrics["PositiveEffects"] + metrics["NegativeEffects"] == float(len(effects))
    assert metrics["MaxEffect"] >= metrics["AverageEffect"] >= metrics["MinEffect"]


@pytest.mark.asyncio
async def test_analyze_uses_rows_where_both_are_observed(linear_dataset):
    rel = new_relationship("Cause", "Effect", 0.9, 0.9, METHOD_PC, NOW)
    result = await analyze_interventions(linear_dataset, [rel], CausalAnalysisConfig())
    assert result.effects
    assert all(e.intervention_variable == "Cause" for e in result.effects)
    assert result.metrics["MaxEffect"] > 0


def test_failing_intervention_value_is_skipped(monkeypatch, caplog):
    from engine.intervention import effects as module

    cause, effect = _pair()
    mean = float(np.mean(cause))
    real = module.classify

    def _classify(value, series):
        if value > mean:
            raise FloatingPointError("overflow")
        return real(value, series)

    monkeypatch.setattr(module, "classify", _classify)
    rel = new_relationship("c", "e", 0.9, 0.9, METHOD_PC, NOW)
    with caplog.at_level("WARNING", logger="engine.intervention.effects"):
        found = effects_for_relationship(rel, cause, effect, CausalAnalysisConfig())
    assert found
    assert all(e.intervention_value <= mean for e in found)
    assert any("skipping c->e" in r.getMessage() for r in caplog.records)
