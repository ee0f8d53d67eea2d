"""
Directed graph over the discovered variable universe, used to derive node degrees, centrality, root causes and a topological order for the causal graph model.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Dict, Iterable, List

from api.responses import CausalEdge, CausalGraph as CausalGraphModel, CausalNode, CausalRelationship
from config import settings


class CausalGraph:
    def __init__(self) -> None:
        self._nodes: List[str] = []
        self._edges: List[CausalEdge] = []
        self._forward: Dict[str, List[CausalEdge]] = defaultdict(list)

    @classmethod
    def from_relationships(
        cls,
        variables: Iterable[str],
        relationships: Iterable[CausalRelationship],
    ) -> CausalGraph:
        graph = cls()
        for name in variables:
            graph.add_node(name)
        for rel in relationships:
            graph.add_edge(
                CausalEdge(
                    cause=rel.cause_variable,
                    effect=rel.effect_variable,
                    relationship_id=rel.id,
                    strength=rel.strength,
                    confidence=rel.confidence,
                    method=rel.method,
                )
            )
        return graph

    def add_node(self, name: str) -> None:
        if name not in self._nodes:
            self._nodes.append(name)

    def add_edge(self, edge: CausalEdge) -> None:
        self.add_node(edge.cause)
        self.add_node(edge.effect)
        self._edges.append(edge)
        self._forward[edge.cause].append(edge)

    def all_nodes(self) -> List[str]:
        return list(self._nodes)

    def in_degree(self, node: str) -> int:
        return sum(1 for e in self._edges if e.effect == node)

    def out_degree(self, node: str) -> int:
        return len(self._forward.get(node, []))

    def topological_sort(self) -> List[str]:
        """Kahn ordering; nodes on a cycle are left out."""
        in_degree: Dict[str, int] = {n: 0 for n in self._nodes}
        for edge in self._edges:
            in_degree[edge.effect] += 1

        queue = deque(n for n in self._nodes if in_degree[n] == 0)
        order: List[str] = []
        while queue:
            node = queue.popleft()
            order.append(node)
            for edge in self._forward.get(node, []):
                in_degree[edge.effect] -= 1
                if in_degree[edge.effect] == 0:
                    queue.append(edge.effect)

        return order

    def is_acyclic(self) -> bool:
        return len(self.topological_sort()) == len(self._nodes)

    def root_causes(self) -> List[str]:
        all_effects = {e.effect for e in self._edges}
        all_causes = {e.cause for e in self._edges}
        return sorted(all_causes - all_effects)

    def to_model(self) -> CausalGraphModel:
        v = len(self._nodes)
        precision = settings.causal_round_precision
        nodes = []
        for name in self._nodes:
            ins, outs = self.in_degree(name), self.out_degree(name)
            nodes.append(
                CausalNode(
                    name=name,
                    in_degree=ins,
                    out_degree=outs,
                    centrality=round((ins + outs) / (v - 1), precision) if v > 1 else 0.0,
                )
            )
        density = len(self._edges) / (v * (v - 1)) if v > 1 else 0.0
        return CausalGraphModel(
            nodes=nodes,
            edges=list(self._edges),
            root_causes=self.root_causes(),
            topological_order=self.topological_sort(),
            is_acyclic=self.is_acyclic(),
            density=round(min(1.0, density), precision),
        )
