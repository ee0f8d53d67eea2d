"""
Enumerations for causal directions, discovery methods, insights, recommendations and differences

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from config import METHOD_GRANGER, METHOD_PC, METHOD_TRANSFER_ENTROPY


class CausalDirection(str, Enum):
    forward = "Forward"
    backward = "Backward"
    bidirectional = "Bidirectional"
    unknown = "Unknown"


class DiscoveryMethod(str, Enum):
    pc = METHOD_PC
    granger = METHOD_GRANGER
    transfer_entropy = METHOD_TRANSFER_ENTROPY


class InsightType(str, Enum):
    strong_causality = "StrongCausality"
    weak_causality = "WeakCausality"
    confounding_detected = "ConfoundingDetected"
    intervention_opportunity = "InterventionOpportunity"
    causal_loop = "CausalLoop"
    mediation_effect = "MediationEffect"
    moderating_factor = "ModeratingFactor"


class RecommendationType(str, Enum):
    optimization = "Optimization"
    investigation = "Investigation"
    improvement = "Improvement"
    prevention = "Prevention"
    enhancement = "Enhancement"
    intervention = "Intervention"


class Priority(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class DifferenceType(str, Enum):
    relationship_lost = "RelationshipLost"
    new_relationship = "NewRelationship"
    strength_changed = "StrengthChanged"
    direction_changed = "DirectionChanged"
    confidence_changed = "ConfidenceChanged"


class InterventionType(str, Enum):
    decrease = "Decrease"
    increase = "Increase"
    moderate = "Moderate Adjustment"
