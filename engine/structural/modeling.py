"""
Structural equation modeling: one linear equation per effect variable, regressed on the causes discovered for it.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

import numpy as np

from api.responses import CausalRelationship, StructuralEquation, StructuralModelingResult, StructuralTerm
from config import settings
from engine.constants import MODEL_ASSUMPTIONS
from engine.dataset import CausalDataset
from engine.stats import two_sided_p_value
from engine.structural.regression import fit_ols

log = logging.getLogger(__name__)

INTERCEPT = "Intercept"


def _term(name: str, coefficient: float, standard_error: float) -> StructuralTerm:
    t = coefficient / standard_error if abs(standard_error) > settings.epsilon else 0.0
    half = settings.sem_ci_z * standard_error
    return StructuralTerm(
        variable=name,
        coefficient=float(coefficient),
        standard_error=float(standard_error),
        t_statistic=float(t),
        p_value=two_sided_p_value(t),
        confidence_interval=(float(coefficient - half), float(coefficient + half)),
    )


def build_equation(
    dataset: CausalDataset,
    dependent: str,
    causes: List[str],
) -> Optional[StructuralEquation]:
    if not causes:
        return None
    y = dataset.series(dependent)
    X = np.column_stack([dataset.series(c) for c in causes])

    fit = fit_ols(X, y)
    if fit is None:
        log.warning("structural: could not fit equation for %s", dependent)
        return None

    terms = [_term(INTERCEPT, fit.intercept, fit.intercept_standard_error)]
    for name, coefficient, se in zip(causes, fit.coefficients, fit.standard_errors):
        terms.append(_term(name, float(coefficient), float(se)))

    return StructuralEquation(
        dependent_variable=dependent,
        terms=terms,
        r_squared=fit.r_squared,
        adjusted_r_squared=fit.adjusted_r_squared,
        standard_error=fit.rmse,
        sample_count=fit.n,
        goodness_of_fit={"AIC": fit.aic, "BIC": fit.bic, "RMSE": fit.rmse},
        assumptions=list(MODEL_ASSUMPTIONS),
    )


def model_fit_statistics(equations: List[StructuralEquation]) -> Dict[str, float]:
    if not equations:
        return {"OverallFit": 0.0}
    avg_adjusted = float(np.mean([e.adjusted_r_squared for e in equations]))
    return {
        "AverageRSquared": float(np.mean([e.r_squared for e in equations])),
        "AverageAdjustedRSquared": avg_adjusted,
        "OverallFit": avg_adjusted,
        "EquationCount": float(len(equations)),
        "TotalParameters": float(sum(len(e.terms) for e in equations)),
        "AverageStandardError": float(np.mean([e.standard_error for e in equations])),
    }


def build_structural_models(
    dataset: CausalDataset,
    relationships: List[CausalRelationship],
) -> StructuralModelingResult:
    groups: "OrderedDict[str, List[str]]" = OrderedDict()
    for rel in relationships:
        causes = groups.setdefault(rel.effect_variable, [])
        if rel.cause_variable not in causes:
            causes.append(rel.cause_variable)

    equations: List[StructuralEquation] = []
    for dependent, causes in groups.items():
        log.debug("structural: %s ~ %s", dependent, " + ".join(causes))
        try:
            equation = build_equation(dataset, dependent, causes)
        except Exception as exc:
            log.warning("structural: skipping equation for %s: %s", dependent, exc)
            continue
        if equation is not None:
            equations.append(equation)

    log.info("structural: built %d equations", len(equations))
    return StructuralModelingResult(
        equations=equations,
        model_statistics=model_fit_statistics(equations),
        assumptions=list(MODEL_ASSUMPTIONS),
        converged=True,
        iterations_used=0,
    )
