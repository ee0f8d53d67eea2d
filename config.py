"""
Constants and configuration for Causalyst.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict

from pydantic_settings import BaseSettings


CAUSALYST_MAX_PARALLEL_CPU_TASKS = int(os.getenv("CAUSALYST_MAX_PARALLEL_CPU_TASKS", "4"))

# method labels carried on discovered relationships
METHOD_PC = "PC Algorithm"
METHOD_GRANGER = "Granger Causality"
METHOD_TRANSFER_ENTROPY = "Transfer Entropy"

# weights used when several discovery methods report the same edge
DEFAULT_METHOD_WEIGHTS: Dict[str, float] = {
    METHOD_PC: 0.4,
    METHOD_GRANGER: 0.4,
    METHOD_TRANSFER_ENTROPY: 0.2,
}

# blend of the three per-relationship strength signals
DEFAULT_STRENGTH_WEIGHTS: Dict[str, float] = {
    "correlation": 0.3,
    "temporal": 0.4,
    "interventional": 0.3,
}


class Settings(BaseSettings):
    # numeric guards
    epsilon: float = 1e-10
    causal_round_precision: int = 4

    # analyzer tuning
    analyzer_max_parallel_cpu_tasks: int = CAUSALYST_MAX_PARALLEL_CPU_TASKS

    # PC skeleton orientation
    pc_orientation_max_lag: int = 5
    pc_orientation_lag_divisor: int = 4
    pc_orientation_min_samples: int = 10
    pc_orientation_min_difference: float = 0.1
    pc_variance_ratio: float = 2.0
    pc_confidence_scale: float = 1.2

    # granger analysis defaults
    granger_strength_scale: float = 10.0
    granger_lag_divisor: int = 4

    # transfer entropy
    transfer_entropy_max_lag: int = 3
    transfer_entropy_lag_divisor: int = 5
    transfer_entropy_min_samples: int = 10
    transfer_entropy_confidence_scale: float = 2.0

    # merging of multi-method discoveries
    method_weights: Dict[str, float] = DEFAULT_METHOD_WEIGHTS
    method_weight_default: float = 0.1

    # causal strength blending
    strength_weights: Dict[str, float] = DEFAULT_STRENGTH_WEIGHTS
    interventional_change_sigma: float = 1.5
    interventional_min_changes: int = 3

    # confounding screening
    confounding_association_alpha: float = 0.05
    confounding_weight_cause: float = 0.3
    confounding_weight_effect: float = 0.3
    confounding_weight_impact: float = 0.4
    confounding_high_impact: float = 0.7

    # validation tests
    validation_max_confounders: int = 5
    validation_dose_min_samples: int = 5

    # insight and recommendation cutoffs
    insight_strong_causality: float = 0.7
    insight_confounding_impact: float = 0.5
    insight_intervention_effect: float = 0.6
    recommendation_confounder_impact: float = 0.5

    # structural equations
    sem_condition_limit: float = 1e12
    sem_ci_z: float = 1.96

    # intervention estimation
    intervention_bootstrap_samples: int = 100
    intervention_seed: int = 42
    intervention_knn_max: int = 10
    intervention_knn_divisor: int = 4
    intervention_extrapolation: float = 0.2
    intervention_high_probability: float = 0.8
    intervention_iqr_factor: float = 1.5
    intervention_nearby_factor: float = 1.1
    intervention_sensitivity_floor: float = 0.1

    # temporal windows and comparisons
    temporal_step_divisor: int = 4
    comparison_strength_change: float = 0.2

    model_config = {
        "env_prefix": "CAUSALYST_",
        "extra": "ignore",
    }


settings = Settings()
