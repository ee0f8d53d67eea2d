"""
Constraint-based discovery: a correlation skeleton whose edges are oriented by temporal precedence, falling back to a variance heuristic.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

import numpy as np

from api.responses import CausalRelationship
from config import METHOD_PC, settings
from engine.causal.relationships import new_relationship
from engine.dataset import CausalDataset
from engine.stats import max_lagged_correlation, pearson, sample_variance

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkeletonEdge:
    first: str
    second: str
    correlation: float


@dataclass(frozen=True)
class Orientation:
    forward: bool
    rule: str
    lagged_forward: float = 0.0
    lagged_backward: float = 0.0


def find_skeleton(dataset: CausalDataset, alpha: float) -> List[SkeletonEdge]:
    edges: List[SkeletonEdge] = []
    names = dataset.variables
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            r = pearson(dataset.series(names[i]), dataset.series(names[j]))
            if abs(r) > alpha:
                edges.append(SkeletonEdge(names[i], names[j], r))
    return edges


def temporal_orientation(x: np.ndarray, y: np.ndarray) -> Optional[Orientation]:
    n = len(x)
    if n < settings.pc_orientation_min_samples:
        return None
    max_lag = min(settings.pc_orientation_max_lag, n // settings.pc_orientation_lag_divisor)
    fwd = max_lagged_correlation(x, y, max_lag)
    bwd = max_lagged_correlation(y, x, max_lag)
    if abs(fwd - bwd) > settings.pc_orientation_min_difference:
        return Orientation(fwd > bwd, "temporal precedence", fwd, bwd)
    return None


def variance_orientation(x: np.ndarray, y: np.ndarray) -> Optional[Orientation]:
    vx, vy = sample_variance(x), sample_variance(y)
    ratio = max(vx, vy) / max(min(vx, vy), settings.epsilon)
    if ratio > settings.pc_variance_ratio:
        # the more variable series is taken as upstream
        return Orientation(vx > vy, "variance ratio")
    return None


def orient(x: np.ndarray, y: np.ndarray) -> Optional[Orientation]:
    return temporal_orientation(x, y) or variance_orientation(x, y)


def _edge_endpoints(edge: SkeletonEdge, orientation: Orientation) -> Tuple[str, str]:
    if orientation.forward:
        return edge.first, edge.second
    return edge.second, edge.first


def pc_relationships(
    dataset: CausalDataset,
    alpha: float,
    discovered_at: datetime,
) -> List[CausalRelationship]:
    skeleton = find_skeleton(dataset, alpha)
    relationships: List[CausalRelationship] = []
    unresolved = 0

    for edge in skeleton:
        orientation = orient(dataset.series(edge.first), dataset.series(edge.second))
        if orientation is None:
            unresolved += 1
            continue
        cause, effect = _edge_endpoints(edge, orientation)
        lead, trail = orientation.lagged_forward, orientation.lagged_backward
        if not orientation.forward:
            lead, trail = trail, lead
        strength = abs(edge.correlation)
        relationships.append(
            new_relationship(
                cause,
                effect,
                strength=strength,
                confidence=min(1.0, strength * settings.pc_confidence_scale),
                method=METHOD_PC,
                discovered_at=discovered_at,
                evidence=[
                    "Constraint-based discovery",
                    "Conditional independence",
                    f"Oriented by {orientation.rule}",
                ],
                statistics={
                    "correlation": round(edge.correlation, 6),
                    "lagged_forward": round(lead, 6),
                    "lagged_backward": round(trail, 6),
                },
            )
        )

    log.debug(
        "pc: %d skeleton edges, %d oriented, %d left unoriented",
        len(skeleton), len(relationships), unresolved,
    )
    return relationships
