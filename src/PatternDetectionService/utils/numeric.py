import numpy as np


def all_finite(*values) -> bool:
    """True when every value is a real, finite number. None counts as non-finite."""
    if any(v is None for v in values):
        return False
    return bool(np.all(np.isfinite(np.asarray(values, dtype=float))))


def percent_difference(a: float, b: float) -> float:
    """Absolute difference as a percentage of the pair mean."""
    mean = (a + b) / 2
    if mean == 0:
        return 0.0 if a == b else float("inf")
    return abs((a - b) / mean) * 100


def within_tolerance(value: float, target: float, tolerance_pct: float) -> bool:
    return percent_difference(value, target) <= tolerance_pct


def close_to_ratio(actual: float, expected: float, tolerance: float) -> bool:
    return abs(actual - expected) <= tolerance
