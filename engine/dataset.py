"""
Time-ordered numeric matrix built from causal observations, shared read-only by every analysis phase.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Tuple

import numpy as np
from pydantic import ValidationError

from api.requests import CausalData
from engine.errors import InvalidCausalDataError


def _coerce_sample(sample: Any) -> CausalData:
    if isinstance(sample, CausalData):
        return sample
    try:
        return CausalData.model_validate(sample)
    except ValidationError as exc:
        raise InvalidCausalDataError(f"invalid causal observation: {exc}") from exc


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class CausalDataset:
    timestamps: Tuple[datetime, ...]
    variables: Tuple[str, ...]
    values: np.ndarray
    observed: np.ndarray

    @classmethod
    def from_samples(cls, samples: Iterable[Any]) -> CausalDataset:
        rows = sorted((_coerce_sample(s) for s in samples), key=lambda d: d.timestamp)

        names: List[str] = []
        seen = set()
        for row in rows:
            for name in row.variables:
                if name not in seen:
                    seen.add(name)
                    names.append(name)

        index = {name: j for j, name in enumerate(names)}
        values = np.zeros((len(rows), len(names)), dtype=float)
        observed = np.zeros((len(rows), len(names)), dtype=bool)
        for i, row in enumerate(rows):
            for name, value in row.variables.items():
                j = index[name]
                values[i, j] = value
                observed[i, j] = True

        return cls(
            timestamps=tuple(r.timestamp for r in rows),
            variables=tuple(names),
            values=_frozen(values),
            observed=_frozen(observed),
        )

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def n_samples(self) -> int:
        return len(self.timestamps)

    def column(self, name: str) -> int:
        return self.variables.index(name)

    def series(self, name: str) -> np.ndarray:
        # unobserved cells read as 0.0
        return self.values[:, self.column(name)]

    def paired(self, a: str, b: str) -> Tuple[np.ndarray, np.ndarray]:
        ia, ib = self.column(a), self.column(b)
        mask = self.observed[:, ia] & self.observed[:, ib]
        return self.values[mask, ia], self.values[mask, ib]

    def window(self, start: int, stop: int) -> CausalDataset:
        obs = self.observed[start:stop]
        keep = [j for j in range(len(self.variables)) if obs[:, j].any()]
        return CausalDataset(
            timestamps=self.timestamps[start:stop],
            variables=tuple(self.variables[j] for j in keep),
            values=_frozen(np.array(self.values[start:stop][:, keep], dtype=float)),
            observed=_frozen(np.array(obs[:, keep], dtype=bool)),
        )
