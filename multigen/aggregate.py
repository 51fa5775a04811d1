"""
Geographic aggregation.

PUMA level: household rows are summed into weighted totals (each flag
times household weight) plus weighted medians of the household medians.

County and state level: PUMA totals are rescaled by an allocation factor
and re-summed into the target geography, then turned into rates. A PUMA
with no crosswalk entry contributes nothing to any county; that loss is
reported, not hidden.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidWeightError
from .models import (
    CATEGORIES,
    GEO_COLUMNS,
    HOH_FLAGS,
    MEDIAN_COLUMNS,
    MULTIGEN_FLAGS,
    PUMA_KEYS,
    RATIO_COLUMNS,
    TOTAL_COLUMNS,
)
from .stats import allocated_median, replicated_median, safe_ratio, weighted_median

logger = logging.getLogger(__name__)


@dataclass
class AllocationReport:
    """What the crosswalk join kept and what it dropped"""
    total_pumas: int = 0
    unmatched_pumas: int = 0
    matched_hh_weight: float = 0.0
    unmatched_hh_weight: float = 0.0
    unmatched_population: float = 0.0


def _check_household_weights(weights: pd.Series) -> None:
    if weights.isna().any() or (weights < 0).any():
        raise InvalidWeightError("Household weights must be present and non-negative")
    fractional = weights[weights != np.floor(weights)]
    if len(fractional) > 0:
        raise InvalidWeightError(
            f"{len(fractional):,} households have fractional weights "
            f"(e.g. {fractional.iloc[0]}); survey weights must be whole numbers"
        )


# =============================================================================
# PUMA LEVEL
# =============================================================================

def aggregate_pumas(households: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate households to one row per (state, PUMA).

    Args:
        households: Output of reduce_households

    Returns:
        DataFrame with PUMA_KEYS + GEO_COLUMNS

    Raises:
        InvalidWeightError: a household weight is negative or fractional
    """
    if households.empty:
        return pd.DataFrame(columns=PUMA_KEYS + GEO_COLUMNS)

    _check_household_weights(households['hh_weight'])
    weight = households['hh_weight']

    weighted = households[PUMA_KEYS].copy()
    weighted['total_hh'] = weight
    weighted['total_population'] = households['hh_size'] * weight
    weighted['total_multi_gen'] = households['is_multi_gen'].astype(float) * weight
    for flag in HOH_FLAGS + MULTIGEN_FLAGS:
        weighted[f'total_{flag}'] = households[flag].astype(float) * weight

    totals = weighted.groupby(PUMA_KEYS, sort=True)[TOTAL_COLUMNS].sum()

    medians = households.groupby(PUMA_KEYS, sort=True).apply(
        lambda g: pd.Series({
            'median_hh_income': weighted_median(g['median_hh_income'], g['hh_weight']),
            'median_hh_age': replicated_median(g['median_hh_age'], g['hh_weight']),
        }),
        include_groups=False
    )

    pumas = totals.join(medians).reset_index()
    logger.info(f"    Aggregated {len(households):,} households into {len(pumas):,} PUMAs")
    return pumas[PUMA_KEYS + GEO_COLUMNS]


# =============================================================================
# RE-AGGREGATION
# =============================================================================

def add_ratios(geo: pd.DataFrame) -> pd.DataFrame:
    """
    Add multigenerational rates; a zero denominator gives NaN, not 0.
    """
    geo = geo.copy()
    geo['multi_gen_pct'] = safe_ratio(geo['total_multi_gen'], geo['total_hh'])
    for cat in CATEGORIES:
        geo[f'{cat}_multigen_pct'] = safe_ratio(
            geo[f'total_{cat}_multigen'],
            geo[f'total_{cat}_hoh']
        )
    return geo


def allocate(pumas: pd.DataFrame, allocation: pd.DataFrame, by: List[str]) -> pd.DataFrame:
    """
    Redistribute PUMA aggregates onto a target geography.

    Args:
        pumas: Output of aggregate_pumas
        allocation: Rows of (state, puma, <target columns>, afact); a PUMA
                    may appear once per target it overlaps
        by: Target geography columns to group on

    Returns:
        One row per target with rescaled totals, medians and rates
    """
    joined = pumas.merge(allocation, on=PUMA_KEYS, how='inner')

    if joined.empty:
        return pd.DataFrame(columns=by + GEO_COLUMNS + RATIO_COLUMNS)

    scaled = joined[by].copy()
    for col in TOTAL_COLUMNS:
        scaled[col] = joined[col] * joined['afact']
    totals = scaled.groupby(by, sort=True)[TOTAL_COLUMNS].sum()

    joined['allocated_hh'] = joined['total_hh'] * joined['afact']
    medians = joined.groupby(by, sort=True).apply(
        lambda g: pd.Series({
            col: allocated_median(g[col], g['allocated_hh']) for col in MEDIAN_COLUMNS
        }),
        include_groups=False
    )

    geo = totals.join(medians).reset_index()
    return add_ratios(geo)[by + GEO_COLUMNS + RATIO_COLUMNS]


def aggregate_counties(
    pumas: pd.DataFrame,
    crosswalk: pd.DataFrame
) -> Tuple[pd.DataFrame, AllocationReport]:
    """
    Re-aggregate PUMA aggregates to counties through a PUMA-county crosswalk.

    Args:
        pumas: Output of aggregate_pumas
        crosswalk: Output of geography.load_crosswalk

    Returns:
        (county table sorted by descending multi_gen_pct, allocation report)
    """
    coverage = pumas.merge(
        crosswalk[PUMA_KEYS].drop_duplicates(),
        on=PUMA_KEYS,
        how='left',
        indicator=True
    )
    unmatched = coverage[coverage['_merge'] == 'left_only']

    report = AllocationReport(
        total_pumas=len(pumas),
        unmatched_pumas=len(unmatched),
        matched_hh_weight=float(pumas['total_hh'].sum() - unmatched['total_hh'].sum()),
        unmatched_hh_weight=float(unmatched['total_hh'].sum()),
        unmatched_population=float(unmatched['total_population'].sum()),
    )

    if report.unmatched_pumas > 0:
        sample = unmatched[PUMA_KEYS].head(5).to_dict('records')
        logger.warning(
            f"{report.unmatched_pumas:,} PUMAs have no crosswalk entry and are dropped "
            f"({report.unmatched_hh_weight:,.0f} households, "
            f"{report.unmatched_population:,.0f} persons). First: {sample}"
        )

    counties = allocate(pumas, crosswalk[PUMA_KEYS + ['county', 'afact']], by=['state', 'county'])
    counties = counties.sort_values(
        'multi_gen_pct', ascending=False, na_position='last', kind='stable'
    ).reset_index(drop=True)

    logger.info(f"    Re-aggregated {len(pumas):,} PUMAs into {len(counties):,} counties")
    return counties, report


def aggregate_states(pumas: pd.DataFrame) -> pd.DataFrame:
    """
    Roll PUMA aggregates up to states (every PUMA lies wholly in its state).
    """
    allocation = pumas[PUMA_KEYS].drop_duplicates().assign(afact=1.0)
    states = allocate(pumas, allocation, by=['state'])

    logger.info(f"    Rolled {len(pumas):,} PUMAs up to {len(states):,} states")
    return states
