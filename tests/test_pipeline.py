"""
Tests for the estimation pipeline and the batch command.
"""

import sys
from pathlib import Path

import pandas as pd
import pytest

from multigen.config import PipelineSettings
from multigen.database import ResultStore
from multigen.exceptions import HouseholdConsistencyError
from multigen.pipeline import MultigenPipeline, write_results

sys.path.insert(0, str(Path(__file__).parent.parent / 'scripts'))
import run_multigen  # noqa: E402


def test_run(sample_result):
    assert sample_result.household_count == 4
    assert len(sample_result.pumas) == 3
    assert sample_result.counties['county'].tolist() == ['06059', '06037']
    assert sample_result.counties['county_name'].tolist() == ['Orange County', 'Los Angeles County']
    assert sample_result.states['multi_gen_pct'].tolist() == [0.75, 1.0]
    assert sample_result.allocation_report.unmatched_pumas == 1


def test_run_without_labels(sample_persons, sample_crosswalk):
    result = MultigenPipeline(sample_crosswalk).run(sample_persons)

    assert 'county_name' not in result.counties.columns
    assert 'state_abbr' not in result.states.columns


def test_adjacent_definition(sample_persons, sample_crosswalk):
    result = MultigenPipeline(sample_crosswalk, definition='adjacent').run(sample_persons)

    ca = result.states[result.states['state'] == 6].iloc[0]
    assert ca['total_multi_gen'] == 5
    assert ca['multi_gen_pct'] == pytest.approx(5 / 12)
    # the 23-coded household no longer counts anywhere
    assert result.counties['total_hispanic_multigen'].sum() == 0


def test_strict_consistency(make_persons, sample_crosswalk):
    persons = make_persons([
        {'SERIAL': 1, 'HHWT': 4},
        {'SERIAL': 1, 'HHWT': 6, 'RELATE': 3},
    ])
    pipeline = MultigenPipeline(sample_crosswalk, on_inconsistent='raise')

    with pytest.raises(HouseholdConsistencyError):
        pipeline.run(persons)


def test_from_settings(sample_crosswalk):
    settings = PipelineSettings(multigen_definition='adjacent', on_inconsistent='raise')

    pipeline = MultigenPipeline.from_settings(settings, sample_crosswalk)

    assert pipeline.definition == 'adjacent'
    assert pipeline.on_inconsistent == 'raise'
    assert pipeline.fips is None


def test_write_results(sample_result, tmp_path):
    written = write_results(sample_result, tmp_path / 'out', 2019)

    assert written['county'] == tmp_path / 'out' / 'multigen_county_2019.csv'
    assert written['state'].exists()

    text = written['county'].read_text()
    assert ',NA,' in text

    counties = pd.read_csv(written['county'], dtype={'county': str})
    assert counties['county'].tolist() == ['06059', '06037']
    assert counties['black_multigen_pct'].isna().tolist() == [True, False]


# =============================================================================
# COMMAND LINE
# =============================================================================

@pytest.fixture
def microdata_file(tmp_path, sample_raw):
    path = tmp_path / 'usa_00001.csv'
    sample_raw.to_csv(path, index=False)
    return path


def test_cli_csv_output(microdata_file, crosswalk_file, fips_file, tmp_path):
    out = tmp_path / 'out'

    code = run_multigen.main([
        '--microdata', str(microdata_file),
        '--crosswalk', str(crosswalk_file),
        '--fips', str(fips_file),
        '--year', '2019',
        '--output-dir', str(out),
    ])

    assert code == 0
    assert (out / 'multigen_county_2019.csv').exists()
    states = pd.read_csv(out / 'multigen_state_2019.csv')
    assert states['state_abbr'].tolist() == ['CA', 'NY']


def test_cli_database_output(microdata_file, crosswalk_file, tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    code = run_multigen.main([
        '--microdata', str(microdata_file),
        '--crosswalk', str(crosswalk_file),
        '--year', '2018',
        '--definition', 'adjacent',
        '--output', 'database',
        '--connection-string', url,
    ])

    assert code == 0
    assert ResultStore(url).list_available_years() == {2018: ['county', 'state']}


def test_cli_database_requires_url(microdata_file, crosswalk_file, monkeypatch):
    monkeypatch.delenv('DATABASE_URL', raising=False)
    monkeypatch.setattr(run_multigen, 'get_settings', lambda: PipelineSettings(database_url=None))

    code = run_multigen.main([
        '--microdata', str(microdata_file),
        '--crosswalk', str(crosswalk_file),
        '--year', '2019',
        '--output', 'database',
    ])

    assert code == 1


def test_cli_invalid_microdata(tmp_path, sample_raw, crosswalk_file):
    path = tmp_path / 'bad.csv'
    sample_raw.assign(RACE=42).to_csv(path, index=False)

    code = run_multigen.main([
        '--microdata', str(path),
        '--crosswalk', str(crosswalk_file),
        '--year', '2019',
        '--output-dir', str(tmp_path / 'out'),
    ])

    assert code == 1
    assert not (tmp_path / 'out').exists()


def test_cli_flags_override_settings(microdata_file, crosswalk_file, tmp_path):
    out = tmp_path / 'out'

    code = run_multigen.main([
        '--microdata', str(microdata_file),
        '--crosswalk', str(crosswalk_file),
        '--year', '2019',
        '--definition', 'adjacent',
        '--output-dir', str(out),
    ])

    assert code == 0
    states = pd.read_csv(out / 'multigen_state_2019.csv')
    ca = states[states['state'] == 6].iloc[0]
    assert ca['total_multi_gen'] == 5
    assert ca['multi_gen_pct'] == pytest.approx(5 / 12)


def test_cli_strict_aborts_on_disagreement(tmp_path, sample_raw, crosswalk_file):
    path = tmp_path / 'usa_00002.csv'
    raw = sample_raw.copy()
    raw.loc[1, 'HHWT'] = 7
    raw.to_csv(path, index=False)
    args = [
        '--microdata', str(path),
        '--crosswalk', str(crosswalk_file),
        '--year', '2019',
        '--output-dir', str(tmp_path / 'out'),
    ]

    assert run_multigen.main(args + ['--strict']) == 1
    assert not (tmp_path / 'out').exists()
