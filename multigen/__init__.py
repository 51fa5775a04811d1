"""
Multigenerational Household Estimates

Computes weighted multigenerational-household prevalence by race/ethnicity
of the household head from census microdata, aggregated from households
to PUMAs, counties and states.
"""

from .pipeline import MultigenPipeline, PipelineResult, write_results
from .models import (
    Race,
    HispanicOrigin,
    Relationship,
    MultigenCode,
    CATEGORIES,
    MULTIGEN_CODES,
    ADJACENT_MULTIGEN_CODES,
    MISSING_SENTINEL,
)
from .decode import decode_microdata, load_microdata, normalize_missing
from .classifier import classify_persons, is_multi_gen, is_multi_gen_adjacent
from .households import reduce_households, find_inconsistent_households
from .aggregate import (
    AllocationReport,
    aggregate_pumas,
    aggregate_counties,
    aggregate_states,
    allocate,
    add_ratios,
)
from .geography import (
    load_crosswalk,
    load_county_fips,
    label_counties,
    label_states,
    fetch_reference_file,
)
from .stats import weighted_median, replicated_median, allocated_median, safe_ratio
from .exceptions import (
    MultigenError,
    DecodeError,
    InvalidWeightError,
    HouseholdConsistencyError,
    CrosswalkError,
)

__version__ = "1.0.0"

__all__ = [
    # Pipeline
    'MultigenPipeline',
    'PipelineResult',
    'write_results',

    # Enums and constants
    'Race',
    'HispanicOrigin',
    'Relationship',
    'MultigenCode',
    'CATEGORIES',
    'MULTIGEN_CODES',
    'ADJACENT_MULTIGEN_CODES',
    'MISSING_SENTINEL',

    # Stages
    'decode_microdata',
    'load_microdata',
    'normalize_missing',
    'classify_persons',
    'is_multi_gen',
    'is_multi_gen_adjacent',
    'reduce_households',
    'find_inconsistent_households',
    'AllocationReport',
    'aggregate_pumas',
    'aggregate_counties',
    'aggregate_states',
    'allocate',
    'add_ratios',

    # Geography
    'load_crosswalk',
    'load_county_fips',
    'label_counties',
    'label_states',
    'fetch_reference_file',

    # Statistics
    'weighted_median',
    'replicated_median',
    'allocated_median',
    'safe_ratio',

    # Errors
    'MultigenError',
    'DecodeError',
    'InvalidWeightError',
    'HouseholdConsistencyError',
    'CrosswalkError',
]
