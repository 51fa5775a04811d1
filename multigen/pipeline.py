"""
Main estimation pipeline.

Orchestrates the 5-stage aggregation:
1. Row classification (person flags)
2. Household reduction (one row per household)
3. PUMA aggregation (weighted totals and medians)
4. County re-aggregation through the PUMA-county crosswalk
5. State aggregation

Stages 4 and 5 both read the stage 3 output. Each stage returns a new
table; nothing is modified in place.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .aggregate import AllocationReport, aggregate_counties, aggregate_pumas, aggregate_states
from .classifier import classify_persons
from .config import PipelineSettings
from .geography import label_counties, label_states
from .households import reduce_households

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Output tables of one pipeline run"""
    household_count: int
    pumas: pd.DataFrame
    counties: pd.DataFrame
    states: pd.DataFrame
    allocation_report: AllocationReport = field(default_factory=AllocationReport)


class MultigenPipeline:
    """
    Multigenerational household estimation pipeline.

    Holds the static geographic reference tables and the run options;
    person tables are passed in per run.
    """

    def __init__(
        self,
        crosswalk: pd.DataFrame,
        fips: Optional[pd.DataFrame] = None,
        definition: str = 'any',
        on_inconsistent: str = 'warn'
    ):
        """
        Initialize pipeline.

        Args:
            crosswalk: PUMA-county crosswalk from geography.load_crosswalk
            fips: County FIPS table from geography.load_county_fips; output
                  rows are left unlabeled when None
            definition: Multigen definition, 'any' or 'adjacent'
            on_inconsistent: Household consistency policy, 'warn' or 'raise'
        """
        self.crosswalk = crosswalk
        self.fips = fips
        self.definition = definition
        self.on_inconsistent = on_inconsistent

    @classmethod
    def from_settings(
        cls,
        settings: PipelineSettings,
        crosswalk: pd.DataFrame,
        fips: Optional[pd.DataFrame] = None
    ) -> 'MultigenPipeline':
        return cls(
            crosswalk,
            fips=fips,
            definition=settings.multigen_definition,
            on_inconsistent=settings.on_inconsistent,
        )

    # =========================================================================
    # STAGES 1-2: Person rows -> households
    # =========================================================================

    def build_households(self, persons: pd.DataFrame) -> pd.DataFrame:
        """
        Stages 1 and 2: classify person rows and reduce them to households.

        The classified copy of the person table is released before
        returning; callers should drop their own reference to `persons`
        as well, since person-level data dominates memory.
        """
        logger.info(f"  → Classifying {len(persons):,} person rows...")
        classified = classify_persons(persons, definition=self.definition)

        logger.info("  → Reducing to households...")
        households = reduce_households(classified, on_inconsistent=self.on_inconsistent)
        del classified

        return households

    # =========================================================================
    # STAGES 3-5: Households -> geography
    # =========================================================================

    def run_households(self, households: pd.DataFrame) -> PipelineResult:
        """
        Stages 3-5: aggregate households to PUMAs, counties and states.
        """
        logger.info("  → Aggregating PUMAs...")
        pumas = aggregate_pumas(households)

        logger.info("  → Re-aggregating to counties...")
        counties, report = aggregate_counties(pumas, self.crosswalk)

        logger.info("  → Aggregating states...")
        states = aggregate_states(pumas)

        if self.fips is not None:
            counties = label_counties(counties, self.fips)
            states = label_states(states, self.fips)

        return PipelineResult(
            household_count=len(households),
            pumas=pumas,
            counties=counties,
            states=states,
            allocation_report=report,
        )

    def run(self, persons: pd.DataFrame) -> PipelineResult:
        """
        Run all stages over a decoded person table.
        """
        households = self.build_households(persons)
        return self.run_households(households)


def write_results(result: PipelineResult, output_dir: Path, year: int) -> Dict[str, Path]:
    """
    Write county and state tables as CSV. Missing values and undefined
    rates are written as NA.

    Returns:
        Mapping of table name to written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, df in [('county', result.counties), ('state', result.states)]:
        path = output_dir / f"multigen_{name}_{year}.csv"
        df.to_csv(path, index=False, na_rep='NA')
        logger.info(f"  → Wrote {path} ({len(df)} rows)")
        written[name] = path

    return written
