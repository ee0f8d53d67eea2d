"""
Causal analysis orchestrator: discovery, structural modeling, intervention analysis, confounding detection, validation and insight generation over one sample set, plus the temporal and comparative analyses built on top of it.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Iterable, Optional

from api.requests import CausalAnalysisConfig, CausalData
from api.responses import CausalAnalysisResult, CausalComparisonResult, TemporalCausalAnalysisResult
from engine.causal import discover
from engine.comparison import compare_results
from engine.confounding import detect_confounders
from engine.dataset import CausalDataset
from engine.errors import AnalysisCancelled
from engine.insights import generate_insights, generate_recommendations, overall_confidence
from engine.intervention import analyze_interventions
from engine.parallel import check_cancelled
from engine.structural import build_structural_models
from engine.temporal import analyze_windows
from engine.validation import assess_relationships, validation_metrics

log = logging.getLogger(__name__)


def _summary(result: CausalAnalysisResult) -> str:
    if not result.relationships:
        return f"No causal relationships found across {len(result.variables)} variable(s)."
    parts = [f"{len(result.relationships)} causal relationship(s)"]
    if result.confounders:
        parts.append(f"{len(result.confounders)} confounder(s)")
    if result.interventions:
        parts.append(f"{len(result.interventions)} intervention effect(s)")
    if result.graph.root_causes:
        parts.append(f"root causes: {', '.join(result.graph.root_causes[:3])}")
    top = result.relationships[0]
    return (
        f"[{result.overall_confidence:.0%} confidence] {' | '.join(parts)}."
        f" Strongest: {top.label} ({top.strength:.2f})"
    )


class CausalAnalysisEngine:
    """Stateless entry point; every call recomputes all artifacts from its input samples."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or log

    async def analyze_causal_relationships(
        self,
        data: Iterable[CausalData],
        config: Optional[CausalAnalysisConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> CausalAnalysisResult:
        config = config or CausalAnalysisConfig()
        dataset = self._dataset(data)
        return await self._analyze_dataset(dataset, config, cancel)

    async def analyze_temporal_causal_relationships(
        self,
        data: Iterable[CausalData],
        config: Optional[CausalAnalysisConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TemporalCausalAnalysisResult:
        config = config or CausalAnalysisConfig()
        dataset = self._dataset(data)
        self._log.info(
            "Temporal causal analysis: %d samples, window=%d",
            dataset.n_samples, config.temporal_window_size,
        )

        async def _window(subset: CausalDataset) -> CausalAnalysisResult:
            return await self._analyze_dataset(subset, config, cancel)

        try:
            return await analyze_windows(dataset, config, _window, cancel)
        except AnalysisCancelled:
            self._log.info("Temporal causal analysis cancelled")
            raise
        except Exception:
            self._log.exception("Temporal causal analysis failed")
            raise

    async def compare_causal_relationships(
        self,
        baseline: Iterable[CausalData],
        comparison: Iterable[CausalData],
        config: Optional[CausalAnalysisConfig] = None,
        cancel: Optional[threading.Event] = None,
    ) -> CausalComparisonResult:
        config = config or CausalAnalysisConfig()
        before, after = await asyncio.gather(
            self.analyze_causal_relationships(baseline, config, cancel),
            self.analyze_causal_relationships(comparison, config, cancel),
        )
        result = compare_results(before, after)
        self._log.info(
            "Causal comparison: similarity=%.3f, %d differences",
            result.similarity, len(result.differences),
        )
        return result

    def _dataset(self, data: Iterable[CausalData]) -> CausalDataset:
        try:
            return CausalDataset.from_samples(data)
        except Exception:
            self._log.exception("Could not build dataset from causal samples")
            raise

    async def _analyze_dataset(
        self,
        dataset: CausalDataset,
        config: CausalAnalysisConfig,
        cancel: Optional[threading.Event],
    ) -> CausalAnalysisResult:
        analyzed_at = datetime.now(timezone.utc)
        self._log.info(
            "Causal analysis: %d samples, %d variables",
            dataset.n_samples, len(dataset.variables),
        )
        try:
            discovery = await discover(dataset, config, cancel, discovered_at=analyzed_at)
            relationships = discovery.relationships

            check_cancelled(cancel, "structural modeling")
            structural = await asyncio.to_thread(build_structural_models, dataset, relationships)

            interventions = await analyze_interventions(dataset, relationships, config, cancel)
            confounding = await detect_confounders(dataset, relationships, config, cancel)
            strengths, validation = await assess_relationships(dataset, relationships, config, cancel)
        except AnalysisCancelled:
            self._log.info("Causal analysis cancelled")
            raise
        except Exception:
            self._log.exception("Causal analysis failed")
            raise

        result = CausalAnalysisResult(
            analyzed_at=analyzed_at,
            sample_count=dataset.n_samples,
            variables=list(dataset.variables),
            relationships=relationships,
            graph=discovery.graph,
            structural_equations=structural.equations,
            model_statistics=structural.model_statistics,
            interventions=interventions.effects,
            confounders=confounding.confounders,
            causal_strengths=strengths,
            validation_results=validation,
            validation_metrics=validation_metrics(validation),
            discovery_metrics=discovery.metrics,
            intervention_metrics=interventions.metrics,
            confounding_metrics=confounding.metrics,
            insights=generate_insights(relationships, strengths, confounding.confounders, interventions.effects),
            recommendations=generate_recommendations(relationships, strengths, confounding.confounders),
            overall_confidence=overall_confidence(strengths, validation, structural.model_statistics),
            analysis_warnings=list(discovery.warnings),
        )
        result.summary = _summary(result)
        self._log.info(
            "Causal analysis complete: %d relationships, confidence=%.3f",
            len(relationships), result.overall_confidence,
        )
        return result
