"""
Microdata decoding.

Turns an IPUMS-style person extract (numeric survey codes, upper-case
column names) into the person table the pipeline consumes. Every
categorical code is checked against a closed code table here, so that
nothing downstream ever sees an unrecognized label.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Type, Union

import pandas as pd

from .exceptions import DecodeError, InvalidWeightError
from .models import (
    HispanicOrigin,
    MultigenCode,
    Race,
    Relationship,
    HISPANIC_CODES,
    MISSING_SENTINEL,
    PERSON_COLUMNS,
    RACE_CODES,
    RELATIONSHIP_CODES,
)

logger = logging.getLogger(__name__)


# Raw extract column -> person table column
RAW_COLUMNS: Dict[str, str] = {
    'STATEFIP': 'state',
    'PUMA': 'puma',
    'SERIAL': 'serial',
    'HHWT': 'hh_weight',
    'PERWT': 'person_weight',
    'AGE': 'age',
    'HHINCOME': 'hh_income',
    'RACE': 'race',
    'HISPAN': 'hispanic',
    'RELATE': 'relationship',
    'MULTGEND': 'multigen_code',
}

# Numeric fields that may carry the "missing" sentinel
MEASURE_COLUMNS = ['age', 'hh_income']


def normalize_missing(values: pd.Series) -> pd.Series:
    """Replace the 9999999 sentinel with NaN. Idempotent."""
    values = pd.to_numeric(values, errors='coerce').astype(float)
    return values.where(values != MISSING_SENTINEL)


def _decode_categorical(
    codes: pd.Series,
    table: Dict[int, Enum],
    enum_cls: Type[Enum],
    column: str
) -> pd.Categorical:
    labels = codes.map({code: member.value for code, member in table.items()})

    unknown = codes[labels.isna()]
    if len(unknown) > 0:
        raise DecodeError(
            f"Unrecognized {column} codes: {sorted(unknown.astype(str).unique())}"
        )

    return pd.Categorical(labels, categories=[member.value for member in enum_cls])


def _decode_multigen(codes: pd.Series) -> pd.Series:
    allowed = {member.value for member in MultigenCode}
    unknown = codes[~codes.isin(allowed)]
    if len(unknown) > 0:
        raise DecodeError(
            f"Unrecognized MULTGEND codes: {sorted(unknown.astype(str).unique())}"
        )
    return codes.astype(int)


def _check_household_weights(weights: pd.Series) -> None:
    if weights.isna().any():
        raise InvalidWeightError(
            f"{int(weights.isna().sum())} person rows have no household weight"
        )
    if (weights < 0).any():
        raise InvalidWeightError(
            f"{int((weights < 0).sum())} person rows have a negative household weight"
        )


def decode_microdata(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Decode a raw person extract into the person table.

    Args:
        raw: DataFrame with STATEFIP, PUMA, SERIAL, HHWT, PERWT, AGE,
             HHINCOME, RACE, HISPAN, RELATE and MULTGEND columns

    Returns:
        New DataFrame with PERSON_COLUMNS

    Raises:
        DecodeError: missing columns or codes outside the code tables
        InvalidWeightError: missing or negative household weights
    """
    missing = [col for col in RAW_COLUMNS if col not in raw.columns]
    if missing:
        raise DecodeError(f"Microdata is missing required columns: {missing}")

    persons = raw[list(RAW_COLUMNS)].rename(columns=RAW_COLUMNS).copy()

    for raw_col, col in [('STATEFIP', 'state'), ('PUMA', 'puma'), ('SERIAL', 'serial')]:
        try:
            ids = pd.to_numeric(persons[col], errors='raise')
        except (ValueError, TypeError) as e:
            raise DecodeError(f"Unparseable {raw_col} values: {e}")
        if ids.isna().any():
            raise DecodeError(f"{int(ids.isna().sum())} person rows have no {raw_col}")
        persons[col] = ids.astype(int)

    for col in ['hh_weight', 'person_weight']:
        persons[col] = pd.to_numeric(persons[col], errors='raise').astype(float)
    _check_household_weights(persons['hh_weight'])

    for col in MEASURE_COLUMNS:
        persons[col] = normalize_missing(persons[col])

    persons['race'] = _decode_categorical(persons['race'], RACE_CODES, Race, 'RACE')
    persons['hispanic'] = _decode_categorical(
        persons['hispanic'], HISPANIC_CODES, HispanicOrigin, 'HISPAN'
    )
    persons['relationship'] = _decode_categorical(
        persons['relationship'], RELATIONSHIP_CODES, Relationship, 'RELATE'
    )
    persons['multigen_code'] = _decode_multigen(persons['multigen_code'])

    return persons[PERSON_COLUMNS].reset_index(drop=True)


def load_microdata(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load and decode a person extract from CSV (compression inferred from suffix).
    """
    path = Path(path)
    logger.info(f"  → Loading microdata from {path.name}...")
    raw = pd.read_csv(path, usecols=list(RAW_COLUMNS), low_memory=False)
    logger.info(f"    Loaded {len(raw):,} person rows")

    persons = decode_microdata(raw)
    logger.info(f"    Decoded {persons[['state', 'puma', 'serial']].drop_duplicates().shape[0]:,} households")
    return persons
