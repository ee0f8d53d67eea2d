"""
Information-theoretic discovery: transfer entropy approximated as the strongest lagged Gaussian mutual information.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import numpy as np

from api.responses import CausalRelationship
from config import METHOD_TRANSFER_ENTROPY, settings
from engine.causal.relationships import new_relationship
from engine.stats import lagged_correlation, mutual_information, pearson


@dataclass(frozen=True)
class InformationResult:
    cause_metric: str
    effect_metric: str
    transfer_entropy: float
    mutual_information: float
    best_lag: int
    is_significant: bool
    confidence: float


def transfer_entropy(cause: np.ndarray, effect: np.ndarray) -> tuple[float, int]:
    n = min(len(cause), len(effect))
    if n < settings.transfer_entropy_min_samples:
        return 0.0, 0
    max_lag = min(settings.transfer_entropy_max_lag, n // settings.transfer_entropy_lag_divisor)
    best, best_lag = 0.0, 0
    for lag in range(1, max_lag + 1):
        te = mutual_information(lagged_correlation(cause, effect, lag))
        if te > best:
            best, best_lag = te, lag
    return best, best_lag


def information_pair_analysis(
    cause_name: str,
    cause_vals: np.ndarray,
    effect_name: str,
    effect_vals: np.ndarray,
    threshold: float,
) -> InformationResult:
    te, lag = transfer_entropy(cause_vals, effect_vals)
    return InformationResult(
        cause_metric=cause_name,
        effect_metric=effect_name,
        transfer_entropy=te,
        mutual_information=mutual_information(pearson(cause_vals, effect_vals)),
        best_lag=lag,
        is_significant=te > threshold,
        confidence=min(1.0, te * settings.transfer_entropy_confidence_scale),
    )


def to_relationship(result: InformationResult, discovered_at: datetime) -> CausalRelationship:
    # entropy is unbounded; strength is capped at 1
    return new_relationship(
        result.cause_metric,
        result.effect_metric,
        strength=min(1.0, result.transfer_entropy),
        confidence=result.confidence,
        method=METHOD_TRANSFER_ENTROPY,
        discovered_at=discovered_at,
        evidence=[
            "Information flow",
            f"Transfer Entropy: {result.transfer_entropy:.3f}",
            f"Mutual Information: {result.mutual_information:.3f}",
        ],
        statistics={
            "transfer_entropy": round(result.transfer_entropy, 6),
            "mutual_information": round(result.mutual_information, 6),
            "best_lag": float(result.best_lag),
        },
    )
