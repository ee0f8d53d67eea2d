"""
Structural equation modeling package.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.structural.modeling import build_equation, build_structural_models, model_fit_statistics
from engine.structural.regression import RegressionResult, fit_ols

__all__ = [
    "build_equation", "build_structural_models", "model_fit_statistics",
    "RegressionResult", "fit_ols",
]
