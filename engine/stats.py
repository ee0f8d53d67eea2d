"""
Shared statistics used across discovery, confounding, validation and intervention estimation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math

import numpy as np
from scipy import stats

from config import settings


def pearson(x: np.ndarray, y: np.ndarray) -> float:
    n = min(len(x), len(y))
    if n < 2:
        return 0.0
    dx = np.asarray(x[:n], dtype=float) - float(np.mean(x[:n]))
    dy = np.asarray(y[:n], dtype=float) - float(np.mean(y[:n]))
    denom = math.sqrt(float(np.dot(dx, dx)) * float(np.dot(dy, dy)))
    if denom < settings.epsilon:
        return 0.0
    return float(np.clip(np.dot(dx, dy) / denom, -1.0, 1.0))


def lagged_correlation(cause: np.ndarray, effect: np.ndarray, lag: int) -> float:
    """Correlation of cause(t - lag) with effect(t)."""
    n = min(len(cause), len(effect))
    if lag < 0 or n - lag < 2:
        return 0.0
    return pearson(cause[: n - lag], effect[lag:n])


def max_lagged_correlation(cause: np.ndarray, effect: np.ndarray, max_lag: int) -> float:
    best = 0.0
    for lag in range(1, max_lag + 1):
        best = max(best, abs(lagged_correlation(cause, effect, lag)))
    return best


def correlation_t_statistic(r: float, n: int) -> float:
    if n <= 2:
        return 0.0
    return r * math.sqrt((n - 2) / max(1.0 - r * r, settings.epsilon))


def two_sided_p_value(statistic: float) -> float:
    return float(min(1.0, max(0.0, 2.0 * stats.norm.sf(abs(statistic)))))


def correlation_p_value(r: float, n: int) -> float:
    return two_sided_p_value(correlation_t_statistic(r, n))


def partial_correlation(r_xy: float, r_xz: float, r_yz: float) -> float:
    denom = math.sqrt(max(0.0, (1.0 - r_xz * r_xz) * (1.0 - r_yz * r_yz)))
    if denom < settings.epsilon:
        return 0.0
    return float(np.clip((r_xy - r_xz * r_yz) / denom, -1.0, 1.0))


def mutual_information(r: float) -> float:
    # gaussian approximation
    return -0.5 * math.log(max(1.0 - r * r, settings.epsilon))


def sample_variance(x: np.ndarray) -> float:
    if len(x) < 2:
        return 0.0
    return float(np.var(x, ddof=1))


def sample_std(x: np.ndarray) -> float:
    return math.sqrt(sample_variance(x))


def clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return float(min(1.0, max(0.0, value)))
