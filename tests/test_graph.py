"""
Test Suite for the causal graph and its serialized model.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from api.responses import CausalEdge, CausalGraph as CausalGraphModel, CausalNode
from config import METHOD_PC
from engine.causal import CausalGraph, new_relationship

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _graph(*pairs, variables=()):
    rels = [new_relationship(c, e, 0.5, 0.5, METHOD_PC, NOW) for c, e in pairs]
    return CausalGraph.from_relationships(variables, rels)


def test_topological_order_and_root_causes():
    g = _graph(("a", "b"), ("b", "c"))
    assert g.topological_sort() == ["a", "b", "c"]
    assert g.root_causes() == ["a"]
    assert g.is_acyclic()


def test_cycle_is_reported():
    g = _graph(("a", "b"), ("b", "a"), ("b", "c"))
    assert not g.is_acyclic()
    assert g.root_causes() == []
    assert g.topological_sort() == []


def test_isolated_variables_become_nodes():
    g = _graph(("a", "b"), variables=("a", "b", "lonely"))
    model = g.to_model()
    names = [n.name for n in model.nodes]
    assert names == ["a", "b", "lonely"]
    lonely = next(n for n in model.nodes if n.name == "lonely")
    assert lonely.in_degree == 0 and lonely.out_degree == 0
    assert lonely.centrality == 0.0


def test_model_degrees_centrality_and_density():
    model = _graph(("a", "b"), ("a", "c")).to_model()
    a = next(n for n in model.nodes if n.name == "a")
    assert a.out_degree == 2
    assert a.centrality == pytest.approx(1.0)
    assert model.density == pytest.approx(round(2 / 6, 4))
    assert model.root_causes == ["a"]
    assert model.is_acyclic
    assert len(model.edges) == 2


def test_graph_model_rejects_dangling_edges():
    edge = CausalEdge(cause="a", effect="ghost", relationship_id="r1", strength=0.5, confidence=0.5, method=METHOD_PC)
    with pytest.raises(ValidationError):
        CausalGraphModel(nodes=[CausalNode(name="a")], edges=[edge])
