"""
Temporal causal analysis: the single-shot pipeline over overlapping sliding windows, with window-to-window stability and change point detection.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from api.requests import CausalAnalysisConfig
from api.responses import (
    CausalAnalysisResult,
    CausalChangePoint,
    CausalTimeWindow,
    TemporalCausalAnalysisResult,
)
from config import settings
from engine.dataset import CausalDataset
from engine.parallel import check_cancelled
from engine.stats import sample_variance

log = logging.getLogger(__name__)

Analyze = Callable[[CausalDataset], Awaitable[CausalAnalysisResult]]


def window_step(size: int) -> int:
    return max(1, size // settings.temporal_step_divisor)


def window_bounds(n: int, size: int) -> List[Tuple[int, int]]:
    if size < 1 or n < size:
        return []
    return [(start, start + size) for start in range(0, n - size + 1, window_step(size))]


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    sa, sb = set(a), set(b)
    union = sa | sb
    if not union:
        return 1.0
    return len(sa & sb) / len(union)


def detect_change_points(windows: List[CausalTimeWindow], threshold: float) -> List[CausalChangePoint]:
    points: List[CausalChangePoint] = []
    for i in range(1, len(windows)):
        current, previous = windows[i], windows[i - 1]
        if current.stability_score < threshold:
            affected = sorted(set(current.relationship_labels) ^ set(previous.relationship_labels))
            points.append(CausalChangePoint(
                window_index=i,
                timestamp=current.start,
                stability_score=current.stability_score,
                stability_drop=previous.stability_score - current.stability_score,
                significance=1.0 - current.stability_score,
                affected_relationships=affected,
            ))
    return points


def stability_metrics(windows: List[CausalTimeWindow]) -> Dict[str, float]:
    if len(windows) < 2:
        return {
            "AverageStability": 1.0,
            "StabilityVariance": 0.0,
            "MinStability": 1.0,
            "MaxStability": 1.0,
        }
    scores = np.array([w.stability_score for w in windows])
    return {
        "AverageStability": float(scores.mean()),
        "StabilityVariance": sample_variance(scores),
        "MinStability": float(scores.min()),
        "MaxStability": float(scores.max()),
    }


async def analyze_windows(
    dataset: CausalDataset,
    config: CausalAnalysisConfig,
    analyze: Analyze,
    cancel: Optional[threading.Event] = None,
) -> TemporalCausalAnalysisResult:
    size = config.temporal_window_size
    bounds = window_bounds(dataset.n_samples, size)
    warnings: List[str] = []
    if not bounds:
        msg = f"Temporal analysis needs at least {size} samples, got {dataset.n_samples}"
        log.warning("temporal: %s", msg)
        warnings.append(msg)

    windows: List[CausalTimeWindow] = []
    for index, (start, stop) in enumerate(bounds):
        check_cancelled(cancel, "temporal analysis")
        subset = dataset.window(start, stop)
        result = await analyze(subset)
        labels = sorted(set(result.labels()))
        stability = 1.0 if not windows else jaccard(labels, windows[-1].relationship_labels)
        windows.append(CausalTimeWindow(
            index=index,
            start=subset.timestamps[0],
            end=subset.timestamps[-1],
            sample_count=subset.n_samples,
            stability_score=stability,
            relationship_labels=labels,
            result=result,
        ))
        log.debug("temporal: window %d [%d:%d] stability=%.3f", index, start, stop, stability)

    change_points = detect_change_points(windows, config.causal_stability_threshold)
    log.info("temporal: %d windows, %d change points", len(windows), len(change_points))

    return TemporalCausalAnalysisResult(
        analyzed_at=datetime.now(timezone.utc),
        windows=windows,
        change_points=change_points,
        stability_metrics=stability_metrics(windows),
        temporal_properties={
            "SampleCount": float(dataset.n_samples),
            "WindowSize": float(size),
            "StepSize": float(window_step(size)),
            "WindowCount": float(len(windows)),
            "ChangePointCount": float(len(change_points)),
        },
        analysis_warnings=warnings,
    )
