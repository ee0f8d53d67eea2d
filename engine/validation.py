"""
Causal strength blending and per-relationship statistical validation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from api.requests import CausalAnalysisConfig
from api.responses import CausalRelationship, CausalValidationResult, CausalValidationTest
from config import settings
from engine.constants import VALIDATION_TESTS
from engine.dataset import CausalDataset
from engine.parallel import bounded_map
from engine.stats import (
    clamp01,
    correlation_p_value,
    max_lagged_correlation,
    partial_correlation,
    pearson,
    sample_std,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrengthComponents:
    correlation: float
    temporal: float
    interventional: float

    def blended(self) -> float:
        w = settings.strength_weights
        return clamp01(
            w.get("correlation", 0.0) * self.correlation
            + w.get("temporal", 0.0) * self.temporal
            + w.get("interventional", 0.0) * self.interventional
        )


def temporal_strength(cause: np.ndarray, effect: np.ndarray) -> float:
    n = min(len(cause), len(effect))
    if n < settings.pc_orientation_min_samples:
        return 0.0
    max_lag = min(settings.pc_orientation_max_lag, n // settings.pc_orientation_lag_divisor)
    return max_lagged_correlation(cause, effect, max_lag)


def interventional_strength(cause: np.ndarray, effect: np.ndarray) -> float:
    """Co-movement of the effect across abrupt jumps in the cause."""
    if len(cause) < 2:
        return 0.0
    threshold = sample_std(cause) * settings.interventional_change_sigma
    cause_changes = np.abs(np.diff(cause))
    effect_changes = np.abs(np.diff(effect))
    jumps = cause_changes > threshold
    if int(jumps.sum()) < settings.interventional_min_changes:
        return 0.0
    return abs(pearson(cause_changes[jumps], effect_changes[jumps]))


def strength_components(cause: np.ndarray, effect: np.ndarray) -> StrengthComponents:
    return StrengthComponents(
        correlation=abs(pearson(cause, effect)),
        temporal=temporal_strength(cause, effect),
        interventional=interventional_strength(cause, effect),
    )


def significance_score(cause: np.ndarray, effect: np.ndarray) -> float:
    return clamp01(1.0 - correlation_p_value(pearson(cause, effect), len(cause)))


def confounding_control_score(
    dataset: CausalDataset,
    relationship: CausalRelationship,
) -> float:
    cause = dataset.series(relationship.cause_variable)
    effect = dataset.series(relationship.effect_variable)
    others = [
        v for v in dataset.variables
        if v not in (relationship.cause_variable, relationship.effect_variable)
    ][: settings.validation_max_confounders]
    if not others:
        return 1.0

    r_xy = pearson(cause, effect)
    shifts = []
    for name in others:
        z = dataset.series(name)
        shifts.append(abs(r_xy - partial_correlation(r_xy, pearson(cause, z), pearson(effect, z))))
    return clamp01(1.0 - float(np.mean(shifts)))


def dose_response_score(cause: np.ndarray, effect: np.ndarray) -> float:
    if len(cause) < settings.validation_dose_min_samples:
        return 0.5
    order = np.argsort(cause, kind="stable")
    steps = np.diff(effect[order])
    increases = int(np.sum(steps > 0))
    total = increases + int(np.sum(steps < 0))
    if total == 0:
        return 0.5
    return increases / total


def validate_relationship(
    dataset: CausalDataset,
    relationship: CausalRelationship,
    threshold: float,
) -> CausalValidationResult:
    cause = dataset.series(relationship.cause_variable)
    effect = dataset.series(relationship.effect_variable)

    scores = dict(zip(VALIDATION_TESTS, (
        significance_score(cause, effect),
        clamp01(temporal_strength(cause, effect)),
        confounding_control_score(dataset, relationship),
        clamp01(dose_response_score(cause, effect)),
    )))

    tests = [CausalValidationTest(name=k, score=v, passed=v > threshold) for k, v in scores.items()]
    overall = clamp01(float(np.mean(list(scores.values()))))
    warnings = [f"{t.name} score {t.score:.2f} is below {threshold:.2f}" for t in tests if not t.passed]

    return CausalValidationResult(
        relationship_id=relationship.id,
        tests=tests,
        overall_score=overall,
        passed=overall > threshold,
        warnings=warnings,
    )


def validation_metrics(results: List[CausalValidationResult]) -> Dict[str, float]:
    if not results:
        return {"OverallValidationScore": 0.0, "PassedRelationships": 0.0, "PassRate": 0.0}
    metrics = {
        "OverallValidationScore": float(np.mean([r.overall_score for r in results])),
        "PassedRelationships": float(sum(1 for r in results if r.passed)),
        "PassRate": sum(1 for r in results if r.passed) / len(results),
    }
    for name in VALIDATION_TESTS:
        metrics[f"Average{name}"] = float(np.mean([
            t.score for r in results for t in r.tests if t.name == name
        ]))
    return metrics


async def assess_relationships(
    dataset: CausalDataset,
    relationships: List[CausalRelationship],
    config: CausalAnalysisConfig,
    cancel: Optional[threading.Event] = None,
) -> Tuple[Dict[str, float], List[CausalValidationResult]]:
    """Blended strength and validation result for every relationship."""

    def _assess(rel: CausalRelationship) -> Tuple[float, CausalValidationResult]:
        cause = dataset.series(rel.cause_variable)
        effect = dataset.series(rel.effect_variable)
        strength = strength_components(cause, effect).blended()
        return strength, validate_relationship(dataset, rel, config.causal_validation_threshold)

    strengths: Dict[str, float] = {}
    results: List[CausalValidationResult] = []
    assessed = await bounded_map(_assess, relationships, cancel=cancel, label="validation")
    for rel, outcome in zip(relationships, assessed):
        if outcome is None:
            continue
        strengths[rel.id] = outcome[0]
        results.append(outcome[1])

    log.info(
        "validation: %d/%d relationships passed",
        sum(1 for r in results if r.passed), len(results),
    )
    return strengths, results
