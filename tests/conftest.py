"""
Pytest fixtures shared by the pipeline and API tests.

The sample extract has four households:

| serial | state | puma | HHWT | MULTGEND | head                    | members |
|--------|-------|------|------|----------|-------------------------|---------|
| 1      | 6     | 3701 | 5    | 31       | Black, not Hispanic     | 3       |
| 2      | 6     | 3701 | 3    | 10       | White, not Hispanic     | 1       |
| 3      | 6     | 3702 | 4    | 23       | White, Mexican          | 2       |
| 4      | 36    | 100  | 2    | 22       | Japanese, Puerto Rican  | 2       |

PUMA 6/3702 is split 25/75 between two counties; PUMA 36/100 has no
crosswalk entry.
"""

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from multigen.decode import decode_microdata


DEFAULT_PERSON = {
    'STATEFIP': 6,
    'PUMA': 3701,
    'SERIAL': 1,
    'HHWT': 5,
    'PERWT': 5,
    'AGE': 40,
    'HHINCOME': 50000,
    'RACE': 1,
    'HISPAN': 0,
    'RELATE': 1,
    'MULTGEND': 10,
}


def raw_persons(rows):
    """Raw extract DataFrame from partial rows filled in with defaults."""
    return pd.DataFrame([{**DEFAULT_PERSON, **row} for row in rows])


@pytest.fixture
def make_persons():
    """
    Factory building a decoded person table from partial raw rows.
    """
    def _make(rows):
        return decode_microdata(raw_persons(rows))
    return _make


@pytest.fixture
def sample_raw():
    hh1 = dict(STATEFIP=6, PUMA=3701, SERIAL=1, HHWT=5, PERWT=5, HHINCOME=80000, MULTGEND=31)
    hh2 = dict(STATEFIP=6, PUMA=3701, SERIAL=2, HHWT=3, PERWT=3, HHINCOME=40000, MULTGEND=10)
    hh3 = dict(STATEFIP=6, PUMA=3702, SERIAL=3, HHWT=4, PERWT=4, HHINCOME=9999999, MULTGEND=23)
    hh4 = dict(STATEFIP=36, PUMA=100, SERIAL=4, HHWT=2, PERWT=2, HHINCOME=120000, MULTGEND=22)

    return raw_persons([
        {**hh1, 'AGE': 60, 'RACE': 2, 'RELATE': 1},
        {**hh1, 'AGE': 58, 'RACE': 2, 'RELATE': 2},
        {**hh1, 'AGE': 10, 'RACE': 2, 'RELATE': 9},
        {**hh2, 'AGE': 30, 'RACE': 1, 'RELATE': 1},
        {**hh3, 'AGE': 45, 'RACE': 1, 'HISPAN': 1, 'RELATE': 1},
        {**hh3, 'AGE': 20, 'RACE': 1, 'HISPAN': 1, 'RELATE': 3},
        {**hh4, 'AGE': 70, 'RACE': 5, 'HISPAN': 2, 'RELATE': 1},
        {**hh4, 'AGE': 40, 'RACE': 5, 'HISPAN': 2, 'RELATE': 3},
    ])


@pytest.fixture
def sample_persons(sample_raw):
    return decode_microdata(sample_raw)


@pytest.fixture
def sample_crosswalk():
    return pd.DataFrame({
        'state': [6, 6, 6],
        'puma': [3701, 3702, 3702],
        'county': ['06037', '06037', '06059'],
        'afact': [1.0, 0.25, 0.75],
    })


@pytest.fixture
def sample_fips():
    fips = pd.DataFrame({
        'state_abbr': ['CA', 'CA', 'NY'],
        'state_name': ['California', 'California', 'New York'],
        'state_fips': ['06', '06', '36'],
        'county_fips': ['037', '059', '061'],
        'county_name': ['Los Angeles County', 'Orange County', 'New York County'],
    })
    fips['fips'] = fips['state_fips'] + fips['county_fips']
    return fips


@pytest.fixture
def crosswalk_file(tmp_path):
    """Geocorr-style export, label row included."""
    path = tmp_path / 'geocorr.tsv'
    path.write_text(
        "state\tpuma12\tcounty\tstab\tafact\n"
        "State code\tPUMA (2012)\tCounty code\tState abbr\tpuma12 to county allocation factor\n"
        "06\t03701\t06037\tCA\t1\n"
        "06\t03702\t06037\tCA\t0.25\n"
        "06\t03702\t06059\tCA\t0.75\n"
    )
    return path


@pytest.fixture
def fips_file(tmp_path):
    path = tmp_path / 'county_fips.csv'
    path.write_text(
        "CA,California,06,037,Los Angeles County\n"
        "CA,California,06,059,Orange County\n"
        "NY,New York,36,061,New York County\n"
    )
    return path


@pytest.fixture
def sample_result(sample_persons, sample_crosswalk, sample_fips):
    from multigen.pipeline import MultigenPipeline

    pipeline = MultigenPipeline(sample_crosswalk, fips=sample_fips)
    return pipeline.run(sample_persons)


@pytest.fixture
def database_url(tmp_path, sample_result):
    """SQLite store holding the sample results for 2019."""
    from multigen.database import ResultStore

    url = f"sqlite:///{tmp_path / 'estimates.db'}"
    ResultStore(url).save_results(sample_result, 2019)
    return url


@pytest.fixture
def client(database_url):
    """
    FastAPI test client backed by the sample store.
    """
    from api.main import app
    from api.config import Settings, get_settings

    def get_settings_override():
        return Settings(
            database_url=database_url,
            debug=True,
            max_rows_per_request=10
        )

    app.dependency_overrides[get_settings] = get_settings_override

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
