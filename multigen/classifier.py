"""
Row classifier.

Labels each person row with the flags the household reducer combines:
multigenerational status under both definitions, and whether the row is
the household head with a given race/ethnicity.
"""

import logging

import pandas as pd

from .decode import normalize_missing
from .models import (
    ASIAN_RACES,
    ADJACENT_MULTIGEN_CODES,
    HispanicOrigin,
    MULTIGEN_CODES,
    MULTIGEN_DEFINITIONS,
    Race,
    Relationship,
)

logger = logging.getLogger(__name__)


def is_multi_gen(codes: pd.Series) -> pd.Series:
    """Multigenerational under the default definition (22, 23, 31, 32)."""
    return codes.isin(MULTIGEN_CODES)


def is_multi_gen_adjacent(codes: pd.Series) -> pd.Series:
    """Multigenerational counting adjacent generations only (22, 31, 32)."""
    return codes.isin(ADJACENT_MULTIGEN_CODES)


def classify_persons(persons: pd.DataFrame, definition: str = 'any') -> pd.DataFrame:
    """
    Add household-level candidate flags to every person row.

    Args:
        persons: Person table from decode_microdata
        definition: Which multigen definition feeds `is_multi_gen`:
                    'any' (default) or 'adjacent'

    Returns:
        New DataFrame; the input is not modified
    """
    if definition not in MULTIGEN_DEFINITIONS:
        raise ValueError(
            f"Unknown multigen definition '{definition}'. Use one of: {list(MULTIGEN_DEFINITIONS)}"
        )

    classified = persons.copy()
    classified['age'] = normalize_missing(classified['age'])
    classified['hh_income'] = normalize_missing(classified['hh_income'])

    codes = classified['multigen_code']
    classified['is_multi_gen_any'] = is_multi_gen(codes)
    classified['is_multi_gen_adjacent'] = is_multi_gen_adjacent(codes)
    classified['is_multi_gen'] = (
        classified['is_multi_gen_any'] if definition == 'any'
        else classified['is_multi_gen_adjacent']
    )

    is_head = classified['relationship'] == Relationship.HEAD.value
    race = classified['race']
    hispanic = classified['hispanic'] != HispanicOrigin.NOT_HISPANIC.value
    white = race == Race.WHITE.value

    classified['is_head'] = is_head
    classified['head_black'] = is_head & (race == Race.BLACK.value)
    classified['head_asian'] = is_head & race.isin([r.value for r in ASIAN_RACES])
    classified['head_hispanic'] = is_head & hispanic
    classified['head_white'] = is_head & white & ~hispanic
    # OR, not exclusive: Hispanic white heads count as non-white here
    classified['head_non_white'] = is_head & (~white | hispanic)

    logger.debug(
        f"Classified {len(classified):,} person rows "
        f"({int(is_head.sum()):,} heads, definition '{definition}')"
    )
    return classified
