"""
Response models for causal analysis results and the value types they aggregate.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, model_serializer, model_validator

from engine.enums import (
    CausalDirection,
    DifferenceType,
    InsightType,
    InterventionType,
    Priority,
    RecommendationType,
)


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_coerce(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class NpModel(BaseModel):

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


def relationship_label(cause: str, effect: str) -> str:
    return f"{cause}->{effect}"


class CausalRelationship(NpModel):

    id: str
    cause_variable: str
    effect_variable: str
    strength: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    method: str
    methods: List[str] = Field(default_factory=list)
    direction: CausalDirection = CausalDirection.forward
    evidence: List[str] = Field(default_factory=list)
    discovered_at: datetime
    statistics: Dict[str, float] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return relationship_label(self.cause_variable, self.effect_variable)


class CausalNode(NpModel):

    name: str
    in_degree: int = 0
    out_degree: int = 0
    centrality: float = Field(default=0.0, ge=0.0)


class CausalEdge(NpModel):

    cause: str
    effect: str
    relationship_id: str
    strength: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    method: str


class CausalGraph(NpModel):

    nodes: List[CausalNode] = Field(default_factory=list)
    edges: List[CausalEdge] = Field(default_factory=list)
    root_causes: List[str] = Field(default_factory=list)
    topological_order: List[str] = Field(default_factory=list)
    is_acyclic: bool = True
    density: float = Field(default=0.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _edges_reference_nodes(self) -> CausalGraph:
        names = {n.name for n in self.nodes}
        for edge in self.edges:
            if edge.cause not in names or edge.effect not in names:
                raise ValueError(f"edge {edge.cause}->{edge.effect} references an unknown node")
        return self


class StructuralTerm(NpModel):

    variable: str
    coefficient: float
    standard_error: float
    t_statistic: float
    p_value: float = Field(ge=0.0, le=1.0)
    confidence_interval: Tuple[float, float]


class StructuralEquation(NpModel):

    dependent_variable: str
    terms: List[StructuralTerm]
    r_squared: float
    adjusted_r_squared: float
    standard_error: float
    sample_count: int
    goodness_of_fit: Dict[str, float] = Field(default_factory=dict)
    assumptions: List[str] = Field(default_factory=list)

    def coefficient(self, variable: str) -> Optional[float]:
        for term in self.terms:
            if term.variable == variable:
                return term.coefficient
        return None


class InterventionEffect(NpModel):

    relationship_id: str
    intervention_variable: str
    target_variable: str
    intervention_value: float
    expected_effect: float
    direct_effect: float
    counterfactual_effect: float
    confidence_interval: Tuple[float, float]
    probability: float = Field(ge=0.0, le=1.0)
    intervention_type: InterventionType
    assumptions: List[str] = Field(default_factory=list)
    sensitivity: Dict[str, float] = Field(default_factory=dict)


class ConfoundingFactor(NpModel):

    variable: str
    affected_relationships: List[str] = Field(default_factory=list)
    impact: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    detection_method: str
    evidence: List[str] = Field(default_factory=list)
    statistics: Dict[str, float] = Field(default_factory=dict)


class CausalValidationTest(NpModel):

    name: str
    score: float = Field(ge=0.0, le=1.0)
    passed: bool


class CausalValidationResult(NpModel):

    relationship_id: str
    tests: List[CausalValidationTest] = Field(default_factory=list)
    overall_score: float = Field(ge=0.0, le=1.0)
    passed: bool
    warnings: List[str] = Field(default_factory=list)


class CausalInsight(NpModel):

    type: InsightType
    title: str
    description: str
    importance: float = Field(ge=0.0, le=1.0)
    relationships: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CausalRecommendation(NpModel):

    type: RecommendationType
    title: str
    description: str
    priority: Priority
    expected_impact: float
    action_items: List[str] = Field(default_factory=list)
    relationships: List[str] = Field(default_factory=list)


class CausalDiscoveryResult(NpModel):

    relationships: List[CausalRelationship] = Field(default_factory=list)
    graph: CausalGraph = Field(default_factory=CausalGraph)
    metrics: Dict[str, float] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


class StructuralModelingResult(NpModel):

    equations: List[StructuralEquation] = Field(default_factory=list)
    model_statistics: Dict[str, float] = Field(default_factory=dict)
    assumptions: List[str] = Field(default_factory=list)
    converged: bool = True
    iterations_used: int = 0


class InterventionAnalysisResult(NpModel):

    effects: List[InterventionEffect] = Field(default_factory=list)
    metrics: Dict[str, float] = Field(default_factory=dict)


class ConfoundingDetectionResult(NpModel):

    confounders: List[ConfoundingFactor] = Field(default_factory=list)
    metrics: Dict[str, float] = Field(default_factory=dict)


class CausalAnalysisResult(NpModel):

    analyzed_at: datetime
    sample_count: int
    variables: List[str] = Field(default_factory=list)
    relationships: List[CausalRelationship] = Field(default_factory=list)
    graph: CausalGraph = Field(default_factory=CausalGraph)
    structural_equations: List[StructuralEquation] = Field(default_factory=list)
    model_statistics: Dict[str, float] = Field(default_factory=dict)
    interventions: List[InterventionEffect] = Field(default_factory=list)
    confounders: List[ConfoundingFactor] = Field(default_factory=list)
    causal_strengths: Dict[str, float] = Field(default_factory=dict)
    validation_results: List[CausalValidationResult] = Field(default_factory=list)
    validation_metrics: Dict[str, float] = Field(default_factory=dict)
    discovery_metrics: Dict[str, float] = Field(default_factory=dict)
    intervention_metrics: Dict[str, float] = Field(default_factory=dict)
    confounding_metrics: Dict[str, float] = Field(default_factory=dict)
    insights: List[CausalInsight] = Field(default_factory=list)
    recommendations: List[CausalRecommendation] = Field(default_factory=list)
    overall_confidence: float = Field(ge=0.0, le=1.0)
    analysis_warnings: List[str] = Field(default_factory=list)
    summary: str = ""

    def labels(self) -> List[str]:
        return [r.label for r in self.relationships]


class CausalTimeWindow(NpModel):

    index: int
    start: datetime
    end: datetime
    sample_count: int
    stability_score: float = Field(ge=0.0, le=1.0)
    relationship_labels: List[str] = Field(default_factory=list)
    result: CausalAnalysisResult


class CausalChangePoint(NpModel):

    window_index: int
    timestamp: datetime
    stability_score: float = Field(ge=0.0, le=1.0)
    stability_drop: float
    significance: float = Field(ge=0.0, le=1.0)
    affected_relationships: List[str] = Field(default_factory=list)


class TemporalCausalAnalysisResult(NpModel):

    analyzed_at: datetime
    windows: List[CausalTimeWindow] = Field(default_factory=list)
    change_points: List[CausalChangePoint] = Field(default_factory=list)
    stability_metrics: Dict[str, float] = Field(default_factory=dict)
    temporal_properties: Dict[str, float] = Field(default_factory=dict)
    analysis_warnings: List[str] = Field(default_factory=list)


class CausalDifference(NpModel):

    type: DifferenceType
    relationship: str
    description: str
    significance: float = Field(ge=0.0, le=1.0)
    baseline_strength: Optional[float] = None
    comparison_strength: Optional[float] = None


class CausalEvolution(NpModel):

    similarity: float = Field(ge=0.0, le=1.0)
    baseline_relationship_count: int
    comparison_relationship_count: int
    common_relationship_count: int
    strength_changes: Dict[str, float] = Field(default_factory=dict)
    baseline_confidence: float
    comparison_confidence: float
    confidence_change: float


class CausalComparisonResult(NpModel):

    analyzed_at: datetime
    baseline: CausalAnalysisResult
    comparison: CausalAnalysisResult
    similarity: float = Field(ge=0.0, le=1.0)
    differences: List[CausalDifference] = Field(default_factory=list)
    evolution: CausalEvolution
    recommendations: List[CausalRecommendation] = Field(default_factory=list)
