"""
Granger causality analysis for determining whether the past of one series helps predict another, scored on the lagged-correlation transform with an auxiliary restricted/unrestricted OLS F-test.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import numpy as np
from scipy import stats

from api.responses import CausalRelationship
from config import METHOD_GRANGER, settings
from engine.causal.relationships import new_relationship
from engine.stats import lagged_correlation, two_sided_p_value


@dataclass(frozen=True)
class GrangerResult:
    cause_metric: str
    effect_metric: str
    best_lag: int
    score: float
    p_value: float
    is_causal: bool
    strength: float
    confidence: float
    f_statistic: Optional[float] = None
    f_p_value: Optional[float] = None


def _ols(X: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, float]:
    coeffs, _, _, _ = np.linalg.lstsq(X, y, rcond=None)
    predicted = X @ coeffs
    ss_res = float(np.sum((y - predicted) ** 2))
    return coeffs, ss_res


def _lag_matrix(series: np.ndarray, max_lag: int) -> np.ndarray:
    n = len(series) - max_lag
    cols = [np.ones(n)]
    for lag in range(1, max_lag + 1):
        cols.append(series[max_lag - lag: max_lag - lag + n])
    return np.column_stack(cols)


def granger_f_test(cause: np.ndarray, effect: np.ndarray, lag: int) -> Optional[Tuple[float, float]]:
    n = len(effect) - lag
    denom_df = n - 2 * lag - 1
    if lag < 1 or denom_df <= 0:
        return None

    y = effect[lag:]
    X_restricted = _lag_matrix(effect, lag)
    _, ss_restricted = _ols(X_restricted, y)

    cause_lags = np.column_stack([
        cause[lag - k: lag - k + n]
        for k in range(1, lag + 1)
    ])
    X_unrestricted = np.hstack([X_restricted, cause_lags])
    _, ss_unrestricted = _ols(X_unrestricted, y)
    if ss_unrestricted <= settings.epsilon:
        return None

    f_stat = float(((ss_restricted - ss_unrestricted) / lag) / (ss_unrestricted / denom_df))
    p_value = float(stats.f.sf(f_stat, lag, denom_df))
    return f_stat, p_value


def granger_pair_analysis(
    cause_name: str,
    cause_vals: np.ndarray,
    effect_name: str,
    effect_vals: np.ndarray,
    max_lag: int,
    significance: float,
) -> Optional[GrangerResult]:
    cause = np.asarray(cause_vals, dtype=float)
    effect = np.asarray(effect_vals, dtype=float)
    n = min(len(cause), len(effect))
    lags = min(max_lag, n // settings.granger_lag_divisor)

    best_lag = 0
    best_score = 0.0
    for lag in range(1, lags + 1):
        m = n - lag
        if m <= 2:
            break
        r = lagged_correlation(cause, effect, lag)
        score = abs(r) * math.sqrt((m - 2) / max(1.0 - r * r, settings.epsilon))
        if score > best_score:
            best_score = score
            best_lag = lag

    if best_lag == 0:
        return None

    p_value = two_sided_p_value(best_score)
    f_test = granger_f_test(cause[:n], effect[:n], best_lag)

    return GrangerResult(
        cause_metric=cause_name,
        effect_metric=effect_name,
        best_lag=best_lag,
        score=round(best_score, settings.causal_round_precision),
        p_value=p_value,
        is_causal=p_value < significance,
        strength=min(1.0, best_score / settings.granger_strength_scale),
        confidence=max(0.0, 1.0 - p_value),
        f_statistic=round(f_test[0], settings.causal_round_precision) if f_test else None,
        f_p_value=f_test[1] if f_test else None,
    )


def to_relationship(result: GrangerResult, discovered_at: datetime) -> CausalRelationship:
    statistics = {
        "best_lag": float(result.best_lag),
        "score": result.score,
        "p_value": result.p_value,
    }
    if result.f_statistic is not None:
        statistics["f_statistic"] = result.f_statistic
        statistics["f_p_value"] = float(result.f_p_value)
    return new_relationship(
        result.cause_metric,
        result.effect_metric,
        strength=result.strength,
        confidence=result.confidence,
        method=METHOD_GRANGER,
        discovered_at=discovered_at,
        evidence=[
            "Temporal precedence",
            f"F-statistic: {result.score:.3f}",
            f"P-value: {result.p_value:.6f}",
        ],
        statistics=statistics,
    )
