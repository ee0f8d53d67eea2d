"""
Intervention analysis: do-operator style estimates of what happens to an effect variable when its cause is held at a chosen value.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

import numpy as np

from api.requests import CausalAnalysisConfig
from api.responses import CausalRelationship, InterventionAnalysisResult, InterventionEffect
from config import settings
from engine.constants import INTERVENTION_ASSUMPTIONS
from engine.dataset import CausalDataset
from engine.enums import InterventionType
from engine.parallel import bounded_map
from engine.stats import clamp01, pearson, sample_std, sample_variance

log = logging.getLogger(__name__)


def direct_effect(cause: np.ndarray, effect: np.ndarray, value: float) -> float:
    sd_cause = sample_std(cause)
    if sd_cause < settings.epsilon:
        return 0.0
    slope = pearson(cause, effect) * (sample_std(effect) / sd_cause)
    return float(slope * (value - float(np.mean(cause))))


def counterfactual_effect(cause: np.ndarray, effect: np.ndarray, value: float) -> float:
    k = min(settings.intervention_knn_max, len(cause) // settings.intervention_knn_divisor)
    if k < 1:
        return 0.0
    distance = np.abs(cause - value)
    nearest = np.argsort(distance, kind="stable")[:k]
    weights = 1.0 / (1.0 + distance[nearest])
    predicted = float(np.sum(weights * effect[nearest]) / np.sum(weights))
    return predicted - float(np.mean(effect))


def intervention_values(cause: np.ndarray) -> List[float]:
    mean = float(np.mean(cause))
    sd = sample_std(cause)
    lo, hi = float(np.min(cause)), float(np.max(cause))
    ceiling = hi + settings.intervention_extrapolation * abs(hi)
    candidates = [mean - 2 * sd, mean - sd, mean, mean + sd, mean + 2 * sd, lo, hi]
    return list(dict.fromkeys(v for v in candidates if lo <= v <= ceiling))


def bootstrap_interval(
    cause: np.ndarray,
    effect: np.ndarray,
    value: float,
    rng: np.random.Generator,
) -> Tuple[float, float]:
    n = len(cause)
    draws = settings.intervention_bootstrap_samples
    estimates = []
    for _ in range(draws):
        idx = rng.integers(0, n, size=n)
        estimates.append(direct_effect(cause[idx], effect[idx], value))
    estimates.sort()
    lower = estimates[int(draws * 0.025)]
    upper = estimates[min(int(draws * 0.975), draws - 1)]
    return float(lower), float(upper)


def effect_probability(expected: float, lower: float, upper: float) -> float:
    width = upper - lower
    if width <= 0:
        return 0.5
    probability = min(1.0, abs(expected) / width)
    if lower <= 0 <= upper:
        probability *= 0.5
    return probability


def classify(value: float, cause: np.ndarray) -> InterventionType:
    mean = float(np.mean(cause))
    sd = sample_std(cause)
    if value < mean - sd:
        return InterventionType.decrease
    if value > mean + sd:
        return InterventionType.increase
    return InterventionType.moderate


def sensitivity(cause: np.ndarray, effect: np.ndarray, value: float) -> Dict[str, float]:
    base = direct_effect(cause, effect, value)
    scale = max(abs(base), settings.intervention_sensitivity_floor)

    half = len(cause) // 2
    half_effect = direct_effect(cause[:half], effect[:half], value)

    q1, q3 = np.percentile(cause, [25, 75])
    iqr = q3 - q1
    keep = (cause >= q1 - settings.intervention_iqr_factor * iqr) & (cause <= q3 + settings.intervention_iqr_factor * iqr)
    robust_effect = direct_effect(cause[keep], effect[keep], value)

    nearby_effect = direct_effect(cause, effect, value * settings.intervention_nearby_factor)

    return {
        "SampleSizeSensitivity": abs(base - half_effect) / scale,
        "OutlierSensitivity": abs(base - robust_effect) / scale,
        "InterventionValueSensitivity": abs(base - nearby_effect) / scale,
    }


def estimate_effect(
    relationship: CausalRelationship,
    cause: np.ndarray,
    effect: np.ndarray,
    value: float,
    rng: np.random.Generator,
) -> InterventionEffect:
    direct = direct_effect(cause, effect, value)
    counterfactual = counterfactual_effect(cause, effect, value)
    expected = (direct + counterfactual) / 2.0
    lower, upper = bootstrap_interval(cause, effect, value, rng)

    return InterventionEffect(
        relationship_id=relationship.id,
        intervention_variable=relationship.cause_variable,
        target_variable=relationship.effect_variable,
        intervention_value=value,
        expected_effect=expected,
        direct_effect=direct,
        counterfactual_effect=counterfactual,
        confidence_interval=(lower, upper),
        probability=clamp01(effect_probability(expected, lower, upper)),
        intervention_type=classify(value, cause),
        assumptions=list(INTERVENTION_ASSUMPTIONS),
        sensitivity=sensitivity(cause, effect, value),
    )


def effects_for_relationship(
    relationship: CausalRelationship,
    cause: np.ndarray,
    effect: np.ndarray,
    config: CausalAnalysisConfig,
) -> Optional[List[InterventionEffect]]:
    """None when there are too few usable samples to estimate anything."""
    if len(cause) < config.min_intervention_samples:
        log.debug(
            "intervention: %s has %d usable samples (< %d), omitted",
            relationship.label, len(cause), config.min_intervention_samples,
        )
        return None

    rng = np.random.default_rng(settings.intervention_seed)
    effects = []
    for value in intervention_values(cause):
        try:
            estimate = estimate_effect(relationship, cause, effect, value, rng)
        except Exception as exc:
            log.warning(
                "intervention: skipping %s at %.4g: %s", relationship.label, value, exc,
            )
            continue
        if abs(estimate.expected_effect) > config.intervention_effect_threshold:
            effects.append(estimate)
    return effects


def intervention_metrics(effects: List[InterventionEffect]) -> Dict[str, float]:
    if not effects:
        return {
            "AverageEffect": 0.0,
            "MaxEffect": 0.0,
            "MinEffect": 0.0,
            "EffectVariance": 0.0,
            "PositiveEffects": 0.0,
            "NegativeEffects": 0.0,
            "HighConfidenceEffects": 0.0,
        }
    sizes = np.array([abs(e.expected_effect) for e in effects])
    return {
        "AverageEffect": float(sizes.mean()),
        "MaxEffect": float(sizes.max()),
        "MinEffect": float(sizes.min()),
        "EffectVariance": sample_variance(sizes),
        "PositiveEffects": float(sum(1 for e in effects if e.expected_effect > 0)),
        "NegativeEffects": float(sum(1 for e in effects if e.expected_effect < 0)),
        "HighConfidenceEffects": float(
            sum(1 for e in effects if e.probability > settings.intervention_high_probability)
        ),
    }


async def analyze_interventions(
    dataset: CausalDataset,
    relationships: List[CausalRelationship],
    config: CausalAnalysisConfig,
    cancel: Optional[threading.Event] = None,
) -> InterventionAnalysisResult:
    log.info("intervention: analysing %d relationships", len(relationships))

    def _estimate(rel: CausalRelationship) -> Optional[List[InterventionEffect]]:
        cause, effect = dataset.paired(rel.cause_variable, rel.effect_variable)
        return effects_for_relationship(rel, cause, effect, config)

    effects: List[InterventionEffect] = []
    omitted = 0
    for found in await bounded_map(_estimate, relationships, cancel=cancel, label="intervention"):
        if found is None:
            omitted += 1
            continue
        effects.extend(found)

    log.info("intervention: %d effects surfaced, %d relationships omitted", len(effects), omitted)
    return InterventionAnalysisResult(effects=effects, metrics=intervention_metrics(effects))
