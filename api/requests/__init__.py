"""
Input models for the causal analysis engine: observations and per-call analysis configuration.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator


class CausalData(BaseModel):
    model_config = {"frozen": True}

    timestamp: datetime
    variables: Dict[str, float] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    source: str = ""
    context: str = ""

    @field_validator("variables")
    @classmethod
    def _drop_non_finite(cls, v: Dict[str, float]) -> Dict[str, float]:
        # NaN and inf are treated as unobserved
        return {k: float(x) for k, x in v.items() if math.isfinite(x)}


class CausalAnalysisConfig(BaseModel):
    pc_algorithm_alpha: float = Field(default=0.05, ge=0.0, le=1.0)
    min_data_points_for_granger: int = Field(default=30, ge=1)
    max_lag_for_granger: int = Field(default=5, ge=1)
    granger_significance_level: float = Field(default=0.05, ge=0.0, le=1.0)
    transfer_entropy_threshold: float = Field(default=0.1, ge=0.0)
    min_causal_strength: float = Field(default=0.3, ge=0.0, le=1.0)
    causal_validation_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    temporal_window_size: int = Field(default=50, ge=2)
    causal_stability_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    # accepted for compatibility; structural equations are solved in closed form
    sem_convergence_threshold: float = Field(default=0.001, gt=0.0)
    max_sem_iterations: int = Field(default=100, ge=1)
    intervention_effect_threshold: float = Field(default=0.2, ge=0.0)
    min_intervention_samples: int = Field(default=10, ge=1)
    confounding_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    max_confounding_variables: int = Field(default=10, ge=0)
