"""Shared price-series builders for detection tests."""

import pytest
import numpy as np
from datetime import datetime, timedelta

import sys
import os

# Add parent directory to path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.market_data import PricePoint

START = datetime(2024, 1, 1)


def series_from_values(values) -> list[PricePoint]:
    """Daily price points starting at START."""
    return [
        PricePoint(date=START + timedelta(days=i), value=float(v))
        for i, v in enumerate(values)
    ]


def zigzag_values(anchors, steps: int = 5) -> list[float]:
    """Straight segments between anchor prices, `steps` bars per segment."""
    values = [float(anchors[0])]
    for a, b in zip(anchors, anchors[1:]):
        values.extend(np.linspace(a, b, steps + 1)[1:].tolist())
    return values


def bars_from_series(series) -> list[dict]:
    return [{"date": p.date.strftime("%Y-%m-%d"), "close": p.value} for p in series]


@pytest.fixture
def zigzag():
    """Build a series through anchor prices: zigzag(anchors, steps=5)."""
    def build(anchors, steps: int = 5):
        return series_from_values(zigzag_values(anchors, steps))
    return build


@pytest.fixture
def head_and_shoulders_series():
    """Shoulders at 110, head at 120, neckline flat at 100, closing below the neckline."""
    return series_from_values(zigzag_values([100, 110, 100, 120, 100, 110, 95]))


@pytest.fixture
def gartley_series():
    """X=0, A=100, AB/XA=0.618, BC/AB=0.382, CD/BC=1.272."""
    c = 38.2 + 0.382 * 61.8
    d = c - 1.272 * (0.382 * 61.8)
    return series_from_values(zigzag_values([10, 0, 100, 38.2, c, d, 40], steps=4))


@pytest.fixture
def random_walk_series():
    rng = np.random.default_rng(7)
    values = 100 + np.cumsum(rng.normal(0, 1.5, 150))
    return series_from_values(values)
