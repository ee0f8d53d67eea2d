"""
Test Suite for baseline versus comparison causal analysis.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import datetime, timezone

import pytest

from api.responses import CausalAnalysisResult
from config import METHOD_PC
from engine.analyzer import CausalAnalysisEngine
from engine.causal import new_relationship
from engine.comparison import compare_results, comparison_recommendations, find_differences
from engine.enums import DifferenceType, RecommendationType

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _result(strengths, confidence=0.5):
    rels = [new_relationship(c, e, 0.9, 0.9, METHOD_PC, NOW) for (c, e) in strengths]
    return CausalAnalysisResult(
        analyzed_at=NOW,
        sample_count=50,
        relationships=rels,
        causal_strengths={r.id: strengths[(r.cause_variable, r.effect_variable)] for r in rels},
        overall_confidence=confidence,
    )


def test_differences_cover_lost_new_and_changed():
    baseline = _result({("a", "b"): 0.8, ("c", "d"): 0.5, ("e", "f"): 0.6})
    comparison = _result({("a", "b"): 0.3, ("e", "f"): 0.65, ("g", "h"): 0.4})
    diffs = find_differences(baseline, comparison)

    by_label = {d.relationship: d for d in diffs}
    assert by_label["c->d"].type == DifferenceType.relationship_lost
    assert by_label["g->h"].type == DifferenceType.new_relationship
    assert by_label["a->b"].type == DifferenceType.strength_changed
    assert by_label["a->b"].significance == pytest.approx(0.5)
    assert "e->f" not in by_label
    significances = [d.significance for d in diffs]
    assert significances == sorted(significances, reverse=True)


def test_evolution_and_similarity():
    baseline = _result({("a", "b"): 0.8, ("c", "d"): 0.5}, confidence=0.4)
    comparison = _result({("a", "b"): 0.7, ("e", "f"): 0.5}, confidence=0.6)
    result = compare_results(baseline, comparison)
    assert result.similarity == pytest.approx(1 / 3)
    assert result.evolution.common_relationship_count == 1
    assert result.evolution.strength_changes["a->b"] == pytest.approx(-0.1)
    assert result.evolution.confidence_change == pytest.approx(0.2)
    assert [r.type for r in result.recommendations] == [RecommendationType.improvement]


def test_recommendation_follows_confidence_direction():
    better, worse = _result({}, confidence=0.8), _result({}, confidence=0.3)
    assert comparison_recommendations(better, worse)[0].title == "Causal Understanding Degraded"
    assert comparison_recommendations(worse, better)[0].title == "Causal Understanding Improved"
    assert comparison_recommendations(better, better) == []


@pytest.mark.asyncio
async def test_comparing_data_with_itself_is_idempotent(linear_samples):
    result = await CausalAnalysisEngine().compare_causal_relationships(linear_samples, linear_samples)
    assert result.similarity == 1.0
    assert result.differences == []
    assert result.recommendations == []
    assert result.evolution.confidence_change == 0.0
