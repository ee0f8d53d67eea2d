"""
Multiple linear regression via the normal equations, with a least-squares fallback for singular or ill-conditioned designs.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from config import settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionResult:
    coefficients: np.ndarray
    standard_errors: np.ndarray
    intercept: float
    intercept_standard_error: float
    r_squared: float
    adjusted_r_squared: float
    mse: float
    n: int
    used_fallback: bool = False

    @property
    def k(self) -> int:
        return len(self.coefficients)

    @property
    def rmse(self) -> float:
        return math.sqrt(self.mse)

    @property
    def log_likelihood(self) -> float:
        # gaussian, using the residual variance estimate
        return -0.5 * self.n * math.log(max(2.0 * math.pi * self.mse, settings.epsilon)) - 0.5 * self.n

    @property
    def aic(self) -> float:
        return 2.0 * (self.k + 1) - 2.0 * self.log_likelihood

    @property
    def bic(self) -> float:
        return math.log(max(self.n, 1)) * (self.k + 1) - 2.0 * self.log_likelihood


def _is_ill_conditioned(xtx: np.ndarray) -> bool:
    cond = np.linalg.cond(xtx)
    return not np.isfinite(cond) or cond > settings.sem_condition_limit


def fit_ols(X: np.ndarray, y: np.ndarray) -> Optional[RegressionResult]:
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    if X.ndim != 2 or X.shape[0] == 0 or X.shape[1] == 0 or X.shape[0] != len(y):
        return None

    n, k = X.shape
    # intercept is the last column
    design = np.column_stack([X, np.ones(n)])
    xtx = design.T @ design

    fallback = _is_ill_conditioned(xtx)
    if fallback:
        log.debug("regression: ill-conditioned design (n=%d, k=%d), using least squares", n, k)
        beta, _, _, _ = np.linalg.lstsq(design, y, rcond=None)
        xtx_inv = np.linalg.pinv(xtx)
    else:
        xtx_inv = np.linalg.inv(xtx)
        beta = xtx_inv @ (design.T @ y)

    residuals = y - design @ beta
    rss = float(residuals @ residuals)
    tss = float(np.sum((y - y.mean()) ** 2))
    r_squared = 1.0 - rss / tss if tss > 0 else 0.0
    adjusted = 1.0 - (1.0 - r_squared) * (n - 1) / (n - k - 1) if n > k + 1 else r_squared

    mse = rss / max(n - k - 1, 1)
    se = np.sqrt(np.maximum(0.0, np.diag(mse * xtx_inv)))

    return RegressionResult(
        coefficients=beta[:-1],
        standard_errors=se[:-1],
        intercept=float(beta[-1]),
        intercept_standard_error=float(se[-1]),
        r_squared=float(r_squared),
        adjusted_r_squared=float(adjusted),
        mse=float(mse),
        n=n,
        used_fallback=fallback,
    )
