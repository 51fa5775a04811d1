"""
Weighted statistics used by the aggregation stages.

Household weights are survey integer weights: one sampled household
stands in for `weight` real households. The weighted medians below are
therefore the median of the multiset in which every value is repeated
`weight` times. They are computed from cumulative weights rather than by
materializing the repeats, which gives the identical result.
"""

from typing import Sequence, Union

import numpy as np
import pandas as pd

from .exceptions import InvalidWeightError

ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]


def _as_float_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


def _check_replication_weights(weights: np.ndarray) -> None:
    """Replication weights must be non-negative whole numbers."""
    if np.isnan(weights).any():
        raise InvalidWeightError("Weights must not be missing")
    if (weights < 0).any():
        raise InvalidWeightError(f"Weights must be non-negative, got {weights[weights < 0].tolist()}")
    fractional = weights != np.floor(weights)
    if fractional.any():
        raise InvalidWeightError(
            f"Weights must be whole numbers, got {weights[fractional].tolist()}"
        )


def _cumulative_median(values: np.ndarray, weights: np.ndarray) -> float:
    """
    Median of `values` where each value counts `weights` times.

    Missing values are dropped with their weights. Returns NaN when no
    weight remains.
    """
    keep = ~np.isnan(values) & (weights > 0)
    values = values[keep]
    weights = weights[keep]

    total = weights.sum()
    if len(values) == 0 or total <= 0:
        return np.nan

    order = np.argsort(values, kind='stable')
    values = values[order]
    cumulative = np.cumsum(weights[order])

    # Middle position(s) of the expanded multiset, 1-based
    half = total / 2.0
    if float(total).is_integer() and int(total) % 2 == 0:
        lower = values[np.searchsorted(cumulative, half, side='left')]
        upper = values[np.searchsorted(cumulative, half + 1, side='left')]
        return float((lower + upper) / 2.0)

    idx = np.searchsorted(cumulative, half, side='left')
    return float(values[min(idx, len(values) - 1)])


def weighted_median(values: ArrayLike, weights: ArrayLike) -> float:
    """
    Weighted median of household income medians.

    Args:
        values: Values to take the median of (NaN = missing)
        weights: Non-negative integer weights, one per value

    Returns:
        The weighted median, or NaN if the lists differ in length, are
        empty, or hold no non-missing value

    Raises:
        InvalidWeightError: a weight is negative or fractional
    """
    values = _as_float_array(values)
    weights = _as_float_array(weights)

    if len(values) != len(weights) or len(values) == 0:
        return np.nan

    _check_replication_weights(weights)
    return _cumulative_median(values, weights)


def replicated_median(values: ArrayLike, weights: ArrayLike) -> float:
    """
    Weighted median of household age medians.

    Unlike weighted_median there is no guard on the inputs: mismatched
    lengths raise, exactly as repeating each value by its weight would.
    """
    values = _as_float_array(values)
    weights = _as_float_array(weights)

    if len(values) != len(weights):
        raise ValueError(
            f"values and weights differ in length ({len(values)} != {len(weights)})"
        )

    _check_replication_weights(weights)
    return _cumulative_median(values, weights)


def allocated_median(values: ArrayLike, weights: ArrayLike) -> float:
    """
    Weighted median with real-valued weights.

    Used when PUMA medians are rolled up to counties, where the weights
    are household totals scaled by fractional allocation factors.
    """
    values = _as_float_array(values)
    weights = _as_float_array(weights)

    if len(values) != len(weights) or len(values) == 0:
        return np.nan
    if np.isnan(weights).any() or (weights < 0).any():
        raise InvalidWeightError("Allocated weights must be non-negative and present")

    return _cumulative_median(values, weights)


def safe_ratio(numerator, denominator):
    """
    Divide elementwise, returning NaN where the denominator is zero.

    Accepts scalars, arrays or Series; a Series numerator keeps its index.
    """
    num = np.asarray(numerator, dtype=float)
    den = np.asarray(denominator, dtype=float)

    out = np.full(np.broadcast(num, den).shape, np.nan)
    np.divide(num, den, out=out, where=(den != 0) & ~np.isnan(den))

    if isinstance(numerator, pd.Series):
        return pd.Series(out, index=numerator.index)
    if out.ndim == 0:
        return float(out)
    return out
