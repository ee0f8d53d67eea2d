"""
Baseline versus comparison analysis: relationship overlap, ranked differences, and how causal confidence evolved between the two.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

from api.responses import (
    CausalAnalysisResult,
    CausalComparisonResult,
    CausalDifference,
    CausalEvolution,
    CausalRecommendation,
)
from config import settings
from engine.enums import DifferenceType, Priority, RecommendationType
from engine.stats import clamp01
from engine.temporal import jaccard


def strengths_by_label(result: CausalAnalysisResult) -> Dict[str, float]:
    return {r.label: result.causal_strengths.get(r.id, 0.0) for r in result.relationships}


def find_differences(
    baseline: CausalAnalysisResult,
    comparison: CausalAnalysisResult,
) -> List[CausalDifference]:
    before = strengths_by_label(baseline)
    after = strengths_by_label(comparison)
    differences: List[CausalDifference] = []

    for label in sorted(before.keys() - after.keys()):
        differences.append(CausalDifference(
            type=DifferenceType.relationship_lost,
            relationship=label,
            description=f"Causal relationship {label} is no longer detected",
            significance=clamp01(before[label]),
            baseline_strength=before[label],
        ))

    for label in sorted(after.keys() - before.keys()):
        differences.append(CausalDifference(
            type=DifferenceType.new_relationship,
            relationship=label,
            description=f"New causal relationship {label} detected",
            significance=clamp01(after[label]),
            comparison_strength=after[label],
        ))

    for label in sorted(before.keys() & after.keys()):
        delta = after[label] - before[label]
        if abs(delta) >= settings.comparison_strength_change:
            trend = "strengthened" if delta > 0 else "weakened"
            differences.append(CausalDifference(
                type=DifferenceType.strength_changed,
                relationship=label,
                description=f"Causal relationship {label} {trend} from {before[label]:.2f} to {after[label]:.2f}",
                significance=clamp01(abs(delta)),
                baseline_strength=before[label],
                comparison_strength=after[label],
            ))

    differences.sort(key=lambda d: d.significance, reverse=True)
    return differences


def causal_evolution(
    baseline: CausalAnalysisResult,
    comparison: CausalAnalysisResult,
) -> CausalEvolution:
    before = strengths_by_label(baseline)
    after = strengths_by_label(comparison)
    common = sorted(before.keys() & after.keys())
    return CausalEvolution(
        similarity=jaccard(before, after),
        baseline_relationship_count=len(before),
        comparison_relationship_count=len(after),
        common_relationship_count=len(common),
        strength_changes={label: after[label] - before[label] for label in common},
        baseline_confidence=baseline.overall_confidence,
        comparison_confidence=comparison.overall_confidence,
        confidence_change=comparison.overall_confidence - baseline.overall_confidence,
    )


def comparison_recommendations(
    baseline: CausalAnalysisResult,
    comparison: CausalAnalysisResult,
) -> List[CausalRecommendation]:
    before, after = baseline.overall_confidence, comparison.overall_confidence
    if after > before:
        return [CausalRecommendation(
            type=RecommendationType.improvement,
            priority=Priority.high,
            title="Causal Understanding Improved",
            description=f"Overall causal confidence increased from {before:.2%} to {after:.2%}",
            expected_impact=after - before,
            action_items=[
                "Continue current optimization approach",
                "Document successful changes for future reference",
                "Monitor to ensure improvements are sustained",
            ],
        )]
    if after < before:
        return [CausalRecommendation(
            type=RecommendationType.investigation,
            priority=Priority.high,
            title="Causal Understanding Degraded",
            description=f"Overall causal confidence decreased from {before:.2%} to {after:.2%}",
            expected_impact=before - after,
            action_items=[
                "Investigate causes of degradation",
                "Consider reverting recent changes",
                "Analyze new confounding factors",
            ],
        )]
    return []


def compare_results(
    baseline: CausalAnalysisResult,
    comparison: CausalAnalysisResult,
) -> CausalComparisonResult:
    evolution = causal_evolution(baseline, comparison)
    return CausalComparisonResult(
        analyzed_at=datetime.now(timezone.utc),
        baseline=baseline,
        comparison=comparison,
        similarity=evolution.similarity,
        differences=find_differences(baseline, comparison),
        evolution=evolution,
        recommendations=comparison_recommendations(baseline, comparison),
    )
