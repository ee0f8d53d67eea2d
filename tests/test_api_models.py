import pytest
from pydantic import ValidationError

from api.requests import CausalAnalysisConfig, CausalData
from api.responses import CausalEdge, CausalRelationship, InterventionEffect, relationship_label
from engine.enums import InterventionType


def test_config_defaults():
    config = CausalAnalysisConfig()
    assert config.pc_algorithm_alpha == 0.05
    assert config.min_data_points_for_granger == 30
    assert config.max_lag_for_granger == 5
    assert config.min_causal_strength == 0.3
    assert config.causal_validation_threshold == 0.6
    assert config.temporal_window_size == 50
    assert config.causal_stability_threshold == 0.7
    assert config.sem_convergence_threshold == 0.001
    assert config.max_sem_iterations == 100
    assert config.intervention_effect_threshold == 0.2
    assert config.min_intervention_samples == 10
    assert config.confounding_threshold == 0.4
    assert config.max_confounding_variables == 10


def test_config_bounds_are_validated():
    with pytest.raises(ValidationError):
        CausalAnalysisConfig(pc_algorithm_alpha=1.5)
    with pytest.raises(ValidationError):
        CausalAnalysisConfig(max_lag_for_granger=0)
    with pytest.raises(ValidationError):
        CausalAnalysisConfig(temporal_window_size=1)


def test_causal_data_is_immutable():
    sample = CausalData(timestamp="2024-01-01T00:00:00Z", variables={"a": 1})
    with pytest.raises(ValidationError):
        sample.source = "other"


def test_relationship_strength_is_bounded():
    with pytest.raises(ValidationError):
        CausalRelationship(
            id="r", cause_variable="a", effect_variable="b", strength=1.2, confidence=0.5,
            method="m", discovered_at="2024-01-01T00:00:00Z",
        )


def test_label_and_numpy_serialization():
    import numpy as np

    assert relationship_label("a", "b") == "a->b"
    edge = CausalEdge(cause="a", effect="b", relationship_id="r", strength=0.5, confidence=0.5, method="m")
    assert edge.model_dump()["strength"] == 0.5

    effect = InterventionEffect(
        relationship_id="r", intervention_variable="a", target_variable="b",
        intervention_value=1.0, expected_effect=0.5, direct_effect=0.5, counterfactual_effect=0.5,
        confidence_interval=(0.1, 0.9), probability=0.5, intervention_type=InterventionType.moderate,
        sensitivity={"OutlierSensitivity": np.float64(0.25)},
    )
    dumped = effect.model_dump()
    assert dumped["confidence_interval"] == [0.1, 0.9]
    assert type(dumped["sensitivity"]["OutlierSensitivity"]) is float
    assert effect.model_dump(mode="json")["intervention_type"] == "Moderate Adjustment"
