"""
Insight and recommendation generation from a completed causal analysis, and the overall confidence score.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from api.responses import (
    CausalInsight,
    CausalRecommendation,
    CausalRelationship,
    CausalValidationResult,
    ConfoundingFactor,
    InterventionEffect,
)
from config import settings
from engine.enums import InsightType, Priority, RecommendationType
from engine.stats import clamp01


def _unique(ids: List[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def generate_insights(
    relationships: List[CausalRelationship],
    strengths: Dict[str, float],
    confounders: List[ConfoundingFactor],
    interventions: List[InterventionEffect],
) -> List[CausalInsight]:
    insights: List[CausalInsight] = []

    strong = [r for r in relationships if strengths.get(r.id, 0.0) > settings.insight_strong_causality]
    if strong:
        insights.append(CausalInsight(
            type=InsightType.strong_causality,
            title="Strong Causal Relationships Identified",
            description=f"Found {len(strong)} strong causal relationships that can guide optimization efforts.",
            importance=clamp01(float(np.mean([strengths[r.id] for r in strong]))),
            relationships=[r.id for r in strong],
            recommendations=[
                "Focus optimization efforts on these high-impact causal relationships",
                "Monitor these relationships for changes during system modifications",
                "Consider these as primary intervention points for improvements",
            ],
        ))

    significant = [c for c in confounders if c.impact > settings.insight_confounding_impact]
    if significant:
        insights.append(CausalInsight(
            type=InsightType.confounding_detected,
            title="Significant Confounding Factors Detected",
            description=(
                f"Identified {len(significant)} confounding factors that may affect causal interpretations."
            ),
            importance=clamp01(float(np.mean([c.impact for c in significant]))),
            relationships=_unique([r for c in significant for r in c.affected_relationships]),
            recommendations=[
                "Control for these confounding factors in future analyses",
                "Consider stratified analysis to isolate true causal effects",
                "Investigate these factors as potential optimization targets",
            ],
        ))

    high_impact = [i for i in interventions if i.expected_effect > settings.insight_intervention_effect]
    if high_impact:
        insights.append(CausalInsight(
            type=InsightType.intervention_opportunity,
            title="High-Impact Intervention Opportunities",
            description=(
                f"Identified {len(high_impact)} intervention opportunities with significant expected effects."
            ),
            # expected effects are in target units; importance is capped
            importance=clamp01(float(np.mean([i.expected_effect for i in high_impact]))),
            relationships=_unique([i.relationship_id for i in high_impact]),
            recommendations=[
                "Prioritize these interventions for maximum system improvement",
                "Implement controlled testing of these intervention strategies",
                "Monitor intervention effects to validate causal models",
            ],
        ))

    return insights


def generate_recommendations(
    relationships: List[CausalRelationship],
    strengths: Dict[str, float],
    confounders: List[ConfoundingFactor],
) -> List[CausalRecommendation]:
    recommendations: List[CausalRecommendation] = []

    strongest: Optional[CausalRelationship] = None
    for rel in relationships:
        if strongest is None or strengths.get(rel.id, 0.0) > strengths.get(strongest.id, 0.0):
            strongest = rel

    if strongest is not None:
        cause, effect = strongest.cause_variable, strongest.effect_variable
        recommendations.append(CausalRecommendation(
            type=RecommendationType.optimization,
            priority=Priority.high,
            title=f"Optimize {cause} to improve {effect}",
            description=f"The strongest causal relationship shows that {cause} has significant impact on {effect}.",
            expected_impact=strengths.get(strongest.id, 0.0),
            action_items=[
                f"Monitor {cause} closely",
                f"Implement controls to optimize {cause}",
                f"Measure impact on {effect}",
            ],
            relationships=[strongest.id],
        ))

    top = max(confounders, key=lambda c: c.impact, default=None)
    if top is not None and top.impact > settings.recommendation_confounder_impact:
        recommendations.append(CausalRecommendation(
            type=RecommendationType.investigation,
            priority=Priority.medium,
            title=f"Address confounding factor: {top.variable}",
            description=f"The variable {top.variable} is confounding multiple causal relationships.",
            expected_impact=top.impact,
            action_items=[
                f"Investigate the role of {top.variable} in the system",
                "Consider controlling for this factor in future analyses",
                "Explore whether this factor can be directly optimized",
            ],
            relationships=list(top.affected_relationships),
        ))

    return recommendations


def overall_confidence(
    strengths: Dict[str, float],
    validation: List[CausalValidationResult],
    model_statistics: Dict[str, float],
) -> float:
    scores: List[float] = []
    if strengths:
        scores.append(float(np.mean(list(strengths.values()))))
    if validation:
        scores.append(float(np.mean([v.overall_score for v in validation])))
    if model_statistics.get("EquationCount", 0) > 0:
        scores.append(model_statistics.get("OverallFit", 0.0))
    return clamp01(float(np.mean(scores))) if scores else 0.0
