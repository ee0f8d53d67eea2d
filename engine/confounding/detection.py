"""
Confounding detection: screens every other variable against each discovered relationship for joint association with cause and effect and for the change in correlation when it is controlled for.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from api.requests import CausalAnalysisConfig
from api.responses import CausalRelationship, ConfoundingDetectionResult, ConfoundingFactor
from config import settings
from engine.constants import CONFOUNDING_METHOD
from engine.dataset import CausalDataset
from engine.parallel import bounded_map
from engine.stats import (
    clamp01,
    correlation_p_value,
    correlation_t_statistic,
    partial_correlation,
    pearson,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Association:
    correlation: float
    t_statistic: float
    p_value: float
    significant: bool


@dataclass(frozen=True)
class ControlImpact:
    impact: float
    original_correlation: float
    partial_correlation: float


def association(x: np.ndarray, z: np.ndarray) -> Association:
    r = pearson(x, z)
    n = min(len(x), len(z))
    p = correlation_p_value(r, n)
    return Association(
        correlation=r,
        t_statistic=correlation_t_statistic(r, n),
        p_value=p,
        significant=p < settings.confounding_association_alpha,
    )


def control_impact(cause: np.ndarray, effect: np.ndarray, candidate: np.ndarray) -> ControlImpact:
    r_xy = pearson(cause, effect)
    partial = partial_correlation(r_xy, pearson(cause, candidate), pearson(effect, candidate))
    return ControlImpact(
        impact=abs(r_xy - partial),
        original_correlation=r_xy,
        partial_correlation=partial,
    )


def confounding_confidence(cause: Association, effect: Association, impact: float) -> float:
    cause_evidence = (1.0 - cause.p_value) if cause.significant else 0.0
    effect_evidence = (1.0 - effect.p_value) if effect.significant else 0.0
    return clamp01(
        settings.confounding_weight_cause * cause_evidence
        + settings.confounding_weight_effect * effect_evidence
        + settings.confounding_weight_impact * min(1.0, impact * 2.0)
    )


def screen_candidate(
    dataset: CausalDataset,
    relationship: CausalRelationship,
    candidate: str,
    threshold: float,
) -> Optional[ConfoundingFactor]:
    """Return the candidate as a confounder of ``relationship``, or None."""
    cause = dataset.series(relationship.cause_variable)
    effect = dataset.series(relationship.effect_variable)
    z = dataset.series(candidate)

    with_cause = association(cause, z)
    with_effect = association(effect, z)
    control = control_impact(cause, effect, z)

    if not (with_cause.significant and with_effect.significant and control.impact > threshold):
        return None

    impact = min(1.0, control.impact)
    return ConfoundingFactor(
        variable=candidate,
        affected_relationships=[relationship.id],
        impact=impact,
        confidence=confounding_confidence(with_cause, with_effect, control.impact),
        detection_method=CONFOUNDING_METHOD,
        evidence=[
            f"Cause association: {abs(with_cause.correlation):.3f}",
            f"Effect association: {abs(with_effect.correlation):.3f}",
            f"Control impact: {control.impact:.3f}",
        ],
        statistics={
            "CauseAssociation": abs(with_cause.correlation),
            "EffectAssociation": abs(with_effect.correlation),
            "ControlImpact": control.impact,
            "CausePValue": with_cause.p_value,
            "EffectPValue": with_effect.p_value,
            "OriginalCorrelation": control.original_correlation,
            "PartialCorrelation": control.partial_correlation,
        },
    )


def candidates_for(
    variables: Sequence[str],
    relationship: CausalRelationship,
    limit: int,
) -> List[str]:
    others = [v for v in variables if v not in (relationship.cause_variable, relationship.effect_variable)]
    return others[:limit]


def merge_confounders(found: List[ConfoundingFactor]) -> List[ConfoundingFactor]:
    grouped: "OrderedDict[str, List[ConfoundingFactor]]" = OrderedDict()
    for factor in found:
        grouped.setdefault(factor.variable, []).append(factor)

    merged: List[ConfoundingFactor] = []
    for variable, group in grouped.items():
        if len(group) == 1:
            merged.append(group[0])
            continue
        affected: List[str] = []
        evidence: List[str] = []
        for factor in group:
            affected.extend(r for r in factor.affected_relationships if r not in affected)
            evidence.extend(e for e in factor.evidence if e not in evidence)
        keys = group[0].statistics.keys()
        merged.append(
            ConfoundingFactor(
                variable=variable,
                affected_relationships=affected,
                impact=clamp01(float(np.mean([f.impact for f in group]))),
                confidence=clamp01(float(np.mean([f.confidence for f in group]))),
                detection_method=group[0].detection_method,
                evidence=evidence,
                statistics={k: float(np.mean([f.statistics[k] for f in group])) for k in keys},
            )
        )

    return sorted(merged, key=lambda f: f.impact, reverse=True)


def detection_metrics(
    confounders: List[ConfoundingFactor],
    relationships: List[CausalRelationship],
) -> Dict[str, float]:
    impacts = [c.impact for c in confounders]
    affected = {r for c in confounders for r in c.affected_relationships}
    return {
        "TotalConfounders": float(len(confounders)),
        "AverageImpact": float(np.mean(impacts)) if impacts else 0.0,
        "MaxImpact": float(max(impacts)) if impacts else 0.0,
        "AverageConfidence": float(np.mean([c.confidence for c in confounders])) if confounders else 0.0,
        "PercentageAffected": len(affected) / len(relationships) if relationships else 0.0,
        "HighImpactConfounders": float(sum(1 for i in impacts if i > settings.confounding_high_impact)),
    }


async def detect_confounders(
    dataset: CausalDataset,
    relationships: List[CausalRelationship],
    config: CausalAnalysisConfig,
    cancel: Optional[threading.Event] = None,
) -> ConfoundingDetectionResult:
    log.info("confounding: screening %d relationships", len(relationships))

    items: List[Tuple[CausalRelationship, str]] = [
        (rel, candidate)
        for rel in relationships
        for candidate in candidates_for(dataset.variables, rel, config.max_confounding_variables)
    ]

    def _screen(item: Tuple[CausalRelationship, str]) -> Optional[ConfoundingFactor]:
        rel, candidate = item
        return screen_candidate(dataset, rel, candidate, config.confounding_threshold)

    found = [f for f in await bounded_map(_screen, items, cancel=cancel, label="confounding") if f is not None]
    confounders = merge_confounders(found)

    log.info("confounding: %d candidate tests, %d confounders", len(items), len(confounders))
    return ConfoundingDetectionResult(
        confounders=confounders,
        metrics=detection_metrics(confounders, relationships),
    )
