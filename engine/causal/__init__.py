"""
Packages for causal discovery, including the constraint-based skeleton, Granger causality tests, transfer entropy, relationship merging and causal graph construction.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.causal.discovery import discover, ordered_pairs
from engine.causal.granger import GrangerResult, granger_pair_analysis
from engine.causal.graph import CausalGraph
from engine.causal.information import InformationResult, information_pair_analysis
from engine.causal.relationships import merge_relationships, new_relationship

__all__ = [
    "discover", "ordered_pairs",
    "GrangerResult", "granger_pair_analysis",
    "CausalGraph",
    "InformationResult", "information_pair_analysis",
    "merge_relationships", "new_relationship",
]
