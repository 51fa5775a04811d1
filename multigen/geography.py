"""
Geographic reference tables.

- PUMA-to-county crosswalk (tab-separated Geocorr export) with allocation
  factors for PUMAs that straddle county lines
- County FIPS code table, used only to put names on output rows
"""

import logging
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import pandas as pd
import requests

from .exceptions import CrosswalkError
from .models import PUMA_KEYS

logger = logging.getLogger(__name__)

# Geocorr exports repeat the header as a row of labels
CROSSWALK_LABEL_ROW = "State code"
CROSSWALK_COLUMNS = ['state', 'puma12', 'county', 'afact']

FIPS_COLUMNS = ['state_abbr', 'state_name', 'state_fips', 'county_fips', 'county_name']

AFACT_TOLERANCE = 1e-3


# =============================================================================
# DOWNLOAD
# =============================================================================

def is_url(location: Union[str, Path]) -> bool:
    return urlparse(str(location)).scheme in ('http', 'https')


def fetch_reference_file(url: str, cache_dir: Path, chunk_size: int = 8192) -> Path:
    """
    Download a reference table once and reuse the cached copy afterwards.
    """
    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)

    filename = Path(urlparse(url).path).name or 'reference.txt'
    local_path = cache_dir / filename

    if local_path.exists():
        logger.info(f"  → Using cached {filename}")
        return local_path

    logger.info(f"  → Downloading {filename}...")
    response = requests.get(url, stream=True, timeout=60)
    response.raise_for_status()

    # Only a complete download may land at local_path; it is reused forever
    partial_path = local_path.with_suffix(local_path.suffix + '.part')
    total_size = 0
    try:
        with open(partial_path, 'wb') as f:
            for chunk in response.iter_content(chunk_size=chunk_size):
                f.write(chunk)
                total_size += len(chunk)
        partial_path.replace(local_path)
    finally:
        partial_path.unlink(missing_ok=True)

    logger.info(f"    Downloaded {total_size / 1024:.1f} KB")
    return local_path


# =============================================================================
# CROSSWALK
# =============================================================================

def load_crosswalk(path: Union[str, Path], sep: str = '\t') -> pd.DataFrame:
    """
    Load a PUMA-to-county crosswalk.

    Args:
        path: Crosswalk file with at least state, puma12, county and afact columns
        sep: Field separator (Geocorr default is tab)

    Returns:
        DataFrame with state (int), puma (int), county (5-digit FIPS str), afact (float)

    Raises:
        CrosswalkError: missing columns, unparseable codes or factors outside [0, 1]
    """
    try:
        crosswalk = pd.read_csv(path, sep=sep, dtype=str, usecols=CROSSWALK_COLUMNS)
    except ValueError as e:
        raise CrosswalkError(f"Crosswalk {path} is missing required columns: {e}")

    crosswalk = crosswalk[crosswalk['state'].str.strip() != CROSSWALK_LABEL_ROW].copy()
    crosswalk = crosswalk.rename(columns={'puma12': 'puma'})

    try:
        crosswalk['state'] = pd.to_numeric(crosswalk['state'].str.strip()).astype(int)
        crosswalk['puma'] = pd.to_numeric(crosswalk['puma'].str.strip()).astype(int)
        crosswalk['afact'] = pd.to_numeric(crosswalk['afact'].str.strip()).astype(float)
    except (ValueError, TypeError) as e:
        raise CrosswalkError(f"Crosswalk {path} has unparseable values: {e}")

    crosswalk['county'] = crosswalk['county'].str.strip().str.zfill(5)

    out_of_range = crosswalk[(crosswalk['afact'] < 0) | (crosswalk['afact'] > 1)]
    if len(out_of_range) > 0:
        raise CrosswalkError(
            f"{len(out_of_range)} crosswalk rows have afact outside [0, 1]"
        )

    sums = crosswalk.groupby(PUMA_KEYS)['afact'].sum()
    off = sums[(sums - 1.0).abs() > AFACT_TOLERANCE]
    if len(off) > 0:
        logger.warning(
            f"{len(off)} PUMAs have allocation factors that do not sum to 1 "
            f"(e.g. {off.index[0]}: {off.iloc[0]:.4f})"
        )

    logger.info(f"    Loaded {len(crosswalk):,} crosswalk rows covering {len(sums):,} PUMAs")
    return crosswalk[['state', 'puma', 'county', 'afact']].reset_index(drop=True)


# =============================================================================
# FIPS LABELS
# =============================================================================

def load_county_fips(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load the county FIPS table (no header; postal code, state name,
    state code, county code, county name) and build the 5-digit join key.
    """
    fips = pd.read_csv(path, header=None, names=FIPS_COLUMNS, dtype=str)
    fips['state_fips'] = fips['state_fips'].str.strip().str.zfill(2)
    fips['county_fips'] = fips['county_fips'].str.strip().str.zfill(3)
    fips['fips'] = fips['state_fips'] + fips['county_fips']

    logger.info(f"    Loaded {len(fips):,} county FIPS codes")
    return fips


def label_counties(counties: pd.DataFrame, fips: pd.DataFrame) -> pd.DataFrame:
    """Attach state and county names; row order is kept."""
    labels = fips[['fips', 'state_abbr', 'state_name', 'county_name']].drop_duplicates('fips')
    labeled = counties.merge(labels, left_on='county', right_on='fips', how='left')
    labeled = labeled.drop(columns='fips')

    unlabeled = labeled['county_name'].isna().sum()
    if unlabeled:
        logger.warning(f"{unlabeled} counties have no entry in the FIPS table")

    front = ['state', 'state_abbr', 'state_name', 'county', 'county_name']
    return labeled[front + [c for c in labeled.columns if c not in front]]


def label_states(states: pd.DataFrame, fips: pd.DataFrame) -> pd.DataFrame:
    """Attach state postal code and name; row order is kept."""
    labels = fips[['state_fips', 'state_abbr', 'state_name']].drop_duplicates('state_fips').copy()
    labels['state'] = labels['state_fips'].astype(int)
    labeled = states.merge(labels.drop(columns='state_fips'), on='state', how='left')

    front = ['state', 'state_abbr', 'state_name']
    return labeled[front + [c for c in labeled.columns if c not in front]]
