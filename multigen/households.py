"""
Household reducer.

Collapses classified person rows into one row per household
(state, PUMA, serial). Household weight and multigenerational status are
household-level fields repeated on every member; they are re-derived here
with a mean and a logical OR, and any household whose members disagree
is reported before that policy is applied.
"""

import logging

import numpy as np
import pandas as pd

from .exceptions import HouseholdConsistencyError
from .models import CATEGORIES, HOUSEHOLD_COLUMNS, HOUSEHOLD_KEYS

logger = logging.getLogger(__name__)

ON_INCONSISTENT = ('warn', 'raise')


def find_inconsistent_households(classified: pd.DataFrame) -> pd.DataFrame:
    """
    Households whose members disagree on household weight or multigen status.

    Returns:
        DataFrame indexed by household key with boolean columns
        `weight_differs` and `multigen_differs`, one row per offending household
    """
    grouped = classified.groupby(HOUSEHOLD_KEYS, sort=False)
    checks = pd.DataFrame({
        'weight_differs': grouped['hh_weight'].nunique(dropna=False) > 1,
        'multigen_differs': grouped['is_multi_gen'].nunique(dropna=False) > 1,
    })
    return checks[checks['weight_differs'] | checks['multigen_differs']]


def reduce_households(classified: pd.DataFrame, on_inconsistent: str = 'warn') -> pd.DataFrame:
    """
    Reduce classified person rows to one row per household.

    Args:
        classified: Output of classify_persons
        on_inconsistent: 'warn' logs households whose members disagree and
                         applies the mean/OR policy; 'raise' aborts

    Returns:
        Household table with HOUSEHOLD_COLUMNS

    Raises:
        HouseholdConsistencyError: on disagreement when on_inconsistent='raise'
    """
    if on_inconsistent not in ON_INCONSISTENT:
        raise ValueError(f"on_inconsistent must be one of {list(ON_INCONSISTENT)}")

    inconsistent = find_inconsistent_households(classified)
    if len(inconsistent) > 0:
        message = (
            f"{len(inconsistent):,} households have members that disagree "
            f"(weight: {int(inconsistent['weight_differs'].sum()):,}, "
            f"multigen: {int(inconsistent['multigen_differs'].sum()):,})"
        )
        if on_inconsistent == 'raise':
            raise HouseholdConsistencyError(message)
        logger.warning(f"{message}; using mean weight and OR of multigen flags")

    households = classified.groupby(HOUSEHOLD_KEYS, sort=True).agg(
        hh_weight=('hh_weight', 'mean'),
        hh_size=('hh_weight', 'size'),
        is_multi_gen=('is_multi_gen', 'any'),
        black_hoh=('head_black', 'any'),
        asian_hoh=('head_asian', 'any'),
        hispanic_any_hoh=('head_hispanic', 'any'),
        white_hoh=('head_white', 'any'),
        non_white_hoh=('head_non_white', 'any'),
        median_hh_age=('age', 'median'),
        median_hh_income=('hh_income', 'median'),
    ).reset_index()

    # A mean of disagreeing whole weights can be fractional, which no
    # later stage accepts
    fractional = households[households['hh_weight'] != np.floor(households['hh_weight'])]
    if len(fractional) > 0:
        first = fractional.iloc[0]
        raise HouseholdConsistencyError(
            f"{len(fractional):,} disagreeing households have no whole-number weight "
            f"(e.g. state {int(first['state'])}, PUMA {int(first['puma'])}, serial {int(first['serial'])}: "
            f"mean weight {first['hh_weight']})"
        )

    # Black and Asian heads take precedence over Hispanic origin
    households['hispanic_hoh'] = (
        households['hispanic_any_hoh']
        & ~households['black_hoh']
        & ~households['asian_hoh']
    )

    for cat in CATEGORIES:
        households[f'{cat}_multigen'] = households['is_multi_gen'] & households[f'{cat}_hoh']

    households['hh_size'] = households['hh_size'].astype(np.int64)

    logger.info(
        f"    Reduced {len(classified):,} person rows to {len(households):,} households "
        f"({int(households['is_multi_gen'].sum()):,} multigenerational)"
    )
    return households[HOUSEHOLD_COLUMNS]
