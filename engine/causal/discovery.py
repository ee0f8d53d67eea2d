"""
Causal discovery phase: runs the constraint-based, Granger and transfer-entropy detectors over one dataset and merges their findings into a single relationship set and graph.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import numpy as np

from api.requests import CausalAnalysisConfig
from api.responses import CausalDiscoveryResult, CausalRelationship
from engine.causal import granger, information
from engine.causal.graph import CausalGraph
from engine.causal.relationships import merge_relationships
from engine.causal.skeleton import pc_relationships
from engine.dataset import CausalDataset
from engine.parallel import bounded_map, check_cancelled

log = logging.getLogger(__name__)


def ordered_pairs(variables: Tuple[str, ...]) -> List[Tuple[str, str]]:
    return [(c, e) for c in variables for e in variables if c != e]


def _metrics(
    dataset: CausalDataset,
    raw: dict[str, List[CausalRelationship]],
    merged: List[CausalRelationship],
    density: float,
) -> dict[str, float]:
    return {
        "VariableCount": float(len(dataset.variables)),
        "PCRelationships": float(len(raw["pc"])),
        "GrangerRelationships": float(len(raw["granger"])),
        "TransferEntropyRelationships": float(len(raw["transfer_entropy"])),
        "CombinedRelationships": float(len(merged)),
        "MultiMethodRelationships": float(sum(1 for r in merged if len(r.methods) > 1)),
        "AverageStrength": float(np.mean([r.strength for r in merged])) if merged else 0.0,
        "GraphDensity": density,
    }


async def discover(
    dataset: CausalDataset,
    config: CausalAnalysisConfig,
    cancel: Optional[threading.Event] = None,
    discovered_at: Optional[datetime] = None,
) -> CausalDiscoveryResult:
    discovered_at = discovered_at or datetime.now(timezone.utc)
    n = dataset.n_samples
    log.info("causal discovery: %d samples, %d variables", n, len(dataset.variables))
    warnings: List[str] = []

    check_cancelled(cancel, "discovery")
    pc = pc_relationships(dataset, config.pc_algorithm_alpha, discovered_at)

    pairs = ordered_pairs(dataset.variables)

    granger_rels: List[CausalRelationship] = []
    if n < config.min_data_points_for_granger:
        msg = f"Granger causality skipped: {n} samples < {config.min_data_points_for_granger} required"
        log.warning("discovery: %s", msg)
        warnings.append(msg)
    elif pairs:
        def _granger(pair: Tuple[str, str]) -> Optional[granger.GrangerResult]:
            cause, effect = pair
            return granger.granger_pair_analysis(
                cause, dataset.series(cause),
                effect, dataset.series(effect),
                max_lag=config.max_lag_for_granger,
                significance=config.granger_significance_level,
            )

        for result in await bounded_map(_granger, pairs, cancel=cancel, label="granger"):
            if result is not None and result.is_causal:
                granger_rels.append(granger.to_relationship(result, discovered_at))

    te_rels: List[CausalRelationship] = []
    if pairs:
        def _information(pair: Tuple[str, str]) -> information.InformationResult:
            cause, effect = pair
            return information.information_pair_analysis(
                cause, dataset.series(cause),
                effect, dataset.series(effect),
                threshold=config.transfer_entropy_threshold,
            )

        for result in await bounded_map(_information, pairs, cancel=cancel, label="transfer_entropy"):
            if result is not None and result.is_significant:
                te_rels.append(information.to_relationship(result, discovered_at))

    raw = {"pc": pc, "granger": granger_rels, "transfer_entropy": te_rels}
    merged = merge_relationships(pc + granger_rels + te_rels, config.min_causal_strength)
    graph = CausalGraph.from_relationships(dataset.variables, merged).to_model()

    log.info(
        "causal discovery: pc=%d granger=%d te=%d -> %d relationships",
        len(pc), len(granger_rels), len(te_rels), len(merged),
    )
    return CausalDiscoveryResult(
        relationships=merged,
        graph=graph,
        metrics=_metrics(dataset, raw, merged, graph.density),
        warnings=warnings,
    )
