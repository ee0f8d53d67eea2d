"""
Test Suite for insight and recommendation generation and the overall confidence score.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import datetime, timezone

import pytest

from api.responses import CausalValidationResult, ConfoundingFactor, InterventionEffect
from config import METHOD_PC
from engine.causal import new_relationship
from engine.constants import CONFOUNDING_METHOD
from engine.enums import InsightType, InterventionType, Priority, RecommendationType
from engine.insights import generate_insights, generate_recommendations, overall_confidence

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

STRONG = new_relationship("a", "b", 0.9, 0.9, METHOD_PC, NOW)
WEAK = new_relationship("c", "d", 0.4, 0.4, METHOD_PC, NOW)


def _confounder(impact):
    return ConfoundingFactor(
        variable="z", affected_relationships=[STRONG.id, WEAK.id], impact=impact,
        confidence=0.8, detection_method=CONFOUNDING_METHOD,
    )


def _effect(expected):
    return InterventionEffect(
        relationship_id=STRONG.id, intervention_variable="a", target_variable="b",
        intervention_value=1.0, expected_effect=expected, direct_effect=expected,
        counterfactual_effect=expected, confidence_interval=(0.0, 2.0), probability=0.5,
        intervention_type=InterventionType.increase,
    )


def test_insights_for_each_signal():
    strengths = {STRONG.id: 0.8, WEAK.id: 0.5}
    insights = generate_insights([STRONG, WEAK], strengths, [_confounder(0.6)], [_effect(3.0), _effect(0.7)])
    kinds = [i.type for i in insights]
    assert kinds == [
        InsightType.strong_causality,
        InsightType.confounding_detected,
        InsightType.intervention_opportunity,
    ]
    assert insights[0].relationships == [STRONG.id]
    assert insights[0].importance == pytest.approx(0.8)
    # effect sizes above 1 are capped
    assert insights[2].importance == 1.0
    assert insights[2].relationships == [STRONG.id]


def test_no_insights_below_thresholds():
    strengths = {STRONG.id: 0.7}
    assert generate_insights([STRONG], strengths, [_confounder(0.5)], [_effect(0.6)]) == []


def test_recommendations_target_strongest_and_top_confounder():
    strengths = {STRONG.id: 0.4, WEAK.id: 0.6}
    recs = generate_recommendations([STRONG, WEAK], strengths, [_confounder(0.3), _confounder(0.9)])
    assert [r.type for r in recs] == [RecommendationType.optimization, RecommendationType.investigation]
    assert recs[0].title == "Optimize c to improve d"
    assert recs[0].priority == Priority.high
    assert recs[1].priority == Priority.medium
    assert recs[1].expected_impact == pytest.approx(0.9)


def test_no_recommendations_without_findings():
    assert generate_recommendations([], {}, [_confounder(0.5)]) == []


def test_overall_confidence_uses_available_parts():
    validation = [CausalValidationResult(relationship_id=STRONG.id, overall_score=0.4, passed=False)]
    stats = {"OverallFit": 0.9, "EquationCount": 1.0}
    assert overall_confidence({STRONG.id: 0.8}, validation, stats) == pytest.approx((0.8 + 0.4 + 0.9) / 3)
    assert overall_confidence({STRONG.id: 0.8}, validation, {"OverallFit": 0.0}) == pytest.approx(0.6)
    assert overall_confidence({}, [], {"OverallFit": 0.0}) == 0.0
