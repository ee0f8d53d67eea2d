"""
Construction and multi-method merging of discovered causal relationships.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from api.responses import CausalRelationship, relationship_label
from config import settings
from engine.enums import CausalDirection
from engine.stats import clamp01

_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "causalyst/relationships")


def relationship_id(cause: str, effect: str, method: str) -> str:
    return str(uuid.uuid5(_ID_NAMESPACE, f"{method}:{relationship_label(cause, effect)}"))


def new_relationship(
    cause: str,
    effect: str,
    strength: float,
    confidence: float,
    method: str,
    discovered_at: datetime,
    evidence: Optional[List[str]] = None,
    statistics: Optional[Dict[str, float]] = None,
) -> CausalRelationship:
    return CausalRelationship(
        id=relationship_id(cause, effect, method),
        cause_variable=cause,
        effect_variable=effect,
        strength=clamp01(strength),
        confidence=clamp01(confidence),
        method=method,
        methods=[method],
        direction=CausalDirection.forward,
        evidence=list(evidence or []),
        discovered_at=discovered_at,
        statistics=dict(statistics or {}),
    )


def _method_weight(method: str) -> float:
    return settings.method_weights.get(method, settings.method_weight_default)


def combine_relationships(group: List[CausalRelationship]) -> CausalRelationship:
    """Weighted combination of several detections of the same cause->effect pair."""
    first = group[0]
    total = 0.0
    strength = 0.0
    confidence = 0.0
    evidence: List[str] = []
    statistics: Dict[str, float] = {}
    methods: List[str] = []

    for rel in group:
        w = _method_weight(rel.method)
        total += w
        strength += rel.strength * w
        confidence += rel.confidence * w
        evidence.extend(rel.evidence)
        for key, value in rel.statistics.items():
            statistics[f"{rel.method}:{key}"] = value
        for m in rel.methods:
            if m not in methods:
                methods.append(m)

    label = ", ".join(methods)
    return CausalRelationship(
        id=relationship_id(first.cause_variable, first.effect_variable, label),
        cause_variable=first.cause_variable,
        effect_variable=first.effect_variable,
        strength=clamp01(strength / total) if total > 0 else 0.0,
        confidence=clamp01(confidence / total) if total > 0 else 0.0,
        method=label,
        methods=methods,
        direction=first.direction,
        evidence=evidence,
        discovered_at=first.discovered_at,
        statistics=statistics,
    )


def merge_relationships(
    relationships: Iterable[CausalRelationship],
    min_strength: float,
) -> List[CausalRelationship]:
    grouped: "OrderedDict[str, List[CausalRelationship]]" = OrderedDict()
    for rel in relationships:
        grouped.setdefault(rel.label, []).append(rel)

    merged: List[CausalRelationship] = []
    for group in grouped.values():
        candidate = group[0] if len(group) == 1 else combine_relationships(group)
        if candidate.strength > min_strength:
            merged.append(candidate)

    # stable sort keeps detector order for ties
    return sorted(merged, key=lambda r: r.strength, reverse=True)
