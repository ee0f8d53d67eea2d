import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from api.requests import CausalData
from engine.dataset import CausalDataset

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


class Lcg:
    """Park-Miller minimal standard generator, so fixtures are identical on every platform."""

    def __init__(self, seed: int) -> None:
        self.state = seed

    def noise(self) -> float:
        # uniform on [-0.5, 0.5)
        self.state = (self.state * 16807) % 2147483647
        return self.state / 2147483647 - 0.5


def to_samples(rows: List[Dict[str, float]]) -> List[CausalData]:
    return [
        CausalData(timestamp=START + timedelta(minutes=i), variables=row)
        for i, row in enumerate(rows)
    ]


def software_metrics_rows(n: int = 50, seed: int = 12345) -> List[Dict[str, float]]:
    rng = Lcg(seed)
    rows = []
    for _ in range(n):
        cc = 10.0 + 10.0 * rng.noise()
        tc = 50.0 + 40.0 * rng.noise()
        ts = 8.0 + 4.0 * rng.noise()
        et = 2.0 * cc + rng.noise()
        mu = 1.5 * cc + rng.noise()
        er = 10.0 - 0.1 * tc + rng.noise()
        rows.append({
            "CodeComplexity": cc,
            "TestCoverage": tc,
            "TeamSize": ts,
            "ExecutionTime": et,
            "MemoryUsage": mu,
            "ErrorRate": er,
        })
    return rows


def linear_rows(n: int = 60, seed: int = 42, slope: float = 0.5) -> List[Dict[str, float]]:
    """effect = 3 + slope * cause + small noise."""
    rng = Lcg(seed)
    rows = []
    for _ in range(n):
        x = 10.0 + 10.0 * rng.noise()
        y = 3.0 + slope * x + 0.2 * rng.noise()
        rows.append({"Cause": x, "Effect": y})
    return rows


def regime_change_rows(n: int = 100, seed: int = 42) -> List[Dict[str, float]]:
    """X drives Y for the first half and W for the second half."""
    rng = Lcg(seed)
    rows = []
    for t in range(n):
        x = 10.0 + 10.0 * rng.noise()
        a = rng.noise()
        b = rng.noise()
        if t < n // 2:
            y, w = 3.0 + 0.5 * x + 0.2 * a, 8.0 + 5.0 * b
        else:
            y, w = 8.0 + 5.0 * a, 3.0 + 0.5 * x + 0.2 * b
        rows.append({"X": x, "Y": y, "W": w})
    return rows


def confounded_rows(n: int = 60, seed: int = 7) -> List[Dict[str, float]]:
    """Z drives both X and Y; there is no direct X -> Y edge."""
    rng = Lcg(seed)
    rows = []
    for _ in range(n):
        z = 10.0 + 10.0 * rng.noise()
        x = z + 2.0 * rng.noise()
        y = z + 2.0 * rng.noise()
        rows.append({"X": x, "Y": y, "Z": z})
    return rows


@pytest.fixture
def software_metrics() -> List[CausalData]:
    return to_samples(software_metrics_rows())


@pytest.fixture
def linear_samples() -> List[CausalData]:
    return to_samples(linear_rows())


@pytest.fixture
def steep_linear_samples() -> List[CausalData]:
    return to_samples(linear_rows(slope=2.0))


@pytest.fixture
def stationary_samples() -> List[CausalData]:
    return to_samples(linear_rows(n=100))


@pytest.fixture
def regime_change_samples() -> List[CausalData]:
    return to_samples(regime_change_rows())


@pytest.fixture
def confounded_dataset() -> CausalDataset:
    return CausalDataset.from_samples(to_samples(confounded_rows()))


@pytest.fixture
def linear_dataset(linear_samples) -> CausalDataset:
    return CausalDataset.from_samples(linear_samples)
