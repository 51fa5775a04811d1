"""
Data models for multigenerational household estimation.

Defines the closed categorical variants decoded from survey codes and the
column sets of the tables handed from one pipeline stage to the next.
"""

from enum import Enum
from typing import Dict, List


class Race(Enum):
    """Race of person (matches IPUMS general RACE codes)"""
    WHITE = "white"
    BLACK = "black"
    AMERICAN_INDIAN_ALASKA_NATIVE = "american_indian_alaska_native"
    CHINESE = "chinese"
    JAPANESE = "japanese"
    OTHER_ASIAN_PACIFIC_ISLANDER = "other_asian_pacific_islander"
    OTHER = "other"
    TWO_MAJOR_RACES = "two_major_races"
    THREE_OR_MORE_MAJOR_RACES = "three_or_more_major_races"


class HispanicOrigin(Enum):
    """Hispanic origin (matches IPUMS general HISPAN codes)"""
    NOT_HISPANIC = "not_hispanic"
    MEXICAN = "mexican"
    PUERTO_RICAN = "puerto_rican"
    CUBAN = "cuban"
    OTHER = "other"
    NOT_REPORTED = "not_reported"


class Relationship(Enum):
    """Relationship to householder (matches IPUMS general RELATE codes)"""
    HEAD = "head"
    SPOUSE = "spouse"
    CHILD = "child"
    CHILD_IN_LAW = "child_in_law"
    PARENT = "parent"
    PARENT_IN_LAW = "parent_in_law"
    SIBLING = "sibling"
    SIBLING_IN_LAW = "sibling_in_law"
    GRANDCHILD = "grandchild"
    OTHER_RELATIVE = "other_relative"
    PARTNER_FRIEND_VISITOR = "partner_friend_visitor"
    OTHER_NONRELATIVE = "other_nonrelative"
    INSTITUTIONAL_INMATE = "institutional_inmate"


class MultigenCode(Enum):
    """Multigenerational household status (matches IPUMS detailed MULTGEND codes)"""
    NOT_APPLICABLE = 0
    ONE_GENERATION = 10
    TWO_GENERATIONS = 20
    TWO_ADJACENT_ADULT_CHILD = 21
    TWO_ADJACENT_ADULT_ADULT = 22
    TWO_NON_ADJACENT = 23
    THREE_GENERATIONS = 31
    FOUR_OR_MORE_GENERATIONS = 32


# Survey code -> variant lookups used at decode time
RACE_CODES: Dict[int, Race] = {
    1: Race.WHITE,
    2: Race.BLACK,
    3: Race.AMERICAN_INDIAN_ALASKA_NATIVE,
    4: Race.CHINESE,
    5: Race.JAPANESE,
    6: Race.OTHER_ASIAN_PACIFIC_ISLANDER,
    7: Race.OTHER,
    8: Race.TWO_MAJOR_RACES,
    9: Race.THREE_OR_MORE_MAJOR_RACES,
}

HISPANIC_CODES: Dict[int, HispanicOrigin] = {
    0: HispanicOrigin.NOT_HISPANIC,
    1: HispanicOrigin.MEXICAN,
    2: HispanicOrigin.PUERTO_RICAN,
    3: HispanicOrigin.CUBAN,
    4: HispanicOrigin.OTHER,
    9: HispanicOrigin.NOT_REPORTED,
}

RELATIONSHIP_CODES: Dict[int, Relationship] = {
    code: relationship for code, relationship in enumerate(Relationship, start=1)
}

ASIAN_RACES = frozenset({
    Race.CHINESE,
    Race.JAPANESE,
    Race.OTHER_ASIAN_PACIFIC_ISLANDER,
})

# Household counts as multigenerational under the default definition
MULTIGEN_CODES = frozenset({22, 23, 31, 32})

# Stricter definition: code 23 skips a generation
ADJACENT_MULTIGEN_CODES = frozenset({22, 31, 32})

MULTIGEN_DEFINITIONS = ('any', 'adjacent')

MISSING_SENTINEL = 9999999


# =============================================================================
# TABLE COLUMNS
# =============================================================================

HOUSEHOLD_KEYS: List[str] = ['state', 'puma', 'serial']
PUMA_KEYS: List[str] = ['state', 'puma']

PERSON_COLUMNS: List[str] = [
    'state', 'puma', 'serial',
    'hh_weight', 'person_weight',
    'age', 'hh_income',
    'race', 'hispanic', 'relationship', 'multigen_code',
]

# Head-of-household categories, in the order they are reported
CATEGORIES: List[str] = ['black', 'asian', 'hispanic', 'white', 'non_white']

HOH_FLAGS: List[str] = [f'{cat}_hoh' for cat in CATEGORIES]
MULTIGEN_FLAGS: List[str] = [f'{cat}_multigen' for cat in CATEGORIES]

HOUSEHOLD_COLUMNS: List[str] = HOUSEHOLD_KEYS + [
    'hh_weight', 'hh_size', 'is_multi_gen',
    *HOH_FLAGS, *MULTIGEN_FLAGS,
    'median_hh_age', 'median_hh_income',
]

# Weighted totals carried from PUMA level upward; all rescale by afact
TOTAL_COLUMNS: List[str] = [
    'total_hh',
    'total_population',
    'total_multi_gen',
    *[f'total_{flag}' for flag in HOH_FLAGS],
    *[f'total_{flag}' for flag in MULTIGEN_FLAGS],
]

MEDIAN_COLUMNS: List[str] = ['median_hh_income', 'median_hh_age']

RATIO_COLUMNS: List[str] = ['multi_gen_pct'] + [f'{cat}_multigen_pct' for cat in CATEGORIES]

GEO_COLUMNS: List[str] = TOTAL_COLUMNS + MEDIAN_COLUMNS
