"""
Result store.

Persists county and state estimates to a SQL database and loads them back
for the results API.

Table Naming Conventions:
- County estimates: multigen_county_{year}  (e.g., multigen_county_2019)
- State estimates:  multigen_state_{year}   (e.g., multigen_state_2019)
"""

import os
import logging
import re
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy import create_engine, text, inspect

from .pipeline import PipelineResult

logger = logging.getLogger(__name__)

TABLE_PATTERN = re.compile(r'^multigen_(county|state)_(\d{4})$')
LEVELS = ('county', 'state')


def table_name(level: str, year: int) -> str:
    if level not in LEVELS:
        raise ValueError(f"Unknown level '{level}'. Use one of: {list(LEVELS)}")
    return f"multigen_{level}_{year}"


class ResultStore:
    """
    Reads and writes estimate tables.
    """

    def __init__(self, connection_string: Optional[str] = None):
        """
        Initialize database connection.

        Args:
            connection_string: SQLAlchemy database URL.
                              If None, uses DATABASE_URL environment variable.
        """
        if connection_string is None:
            connection_string = os.getenv('DATABASE_URL')
            if not connection_string:
                raise ValueError(
                    "No database connection string provided. "
                    "Set DATABASE_URL environment variable or pass connection_string."
                )

        self.connection_string = connection_string
        self.engine = create_engine(connection_string)
        self._verify_connection()
        logger.info("Database connection established")

    def _verify_connection(self):
        """Verify database connection works"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            raise RuntimeError(f"Failed to connect to database: {e}")

    def save_results(self, result: PipelineResult, year: int) -> List[str]:
        """
        Replace the county and state tables for a year.

        Returns:
            Names of the tables written
        """
        written = []
        with self.engine.begin() as conn:
            for level, df in [('county', result.counties), ('state', result.states)]:
                name = table_name(level, year)
                df.to_sql(name, conn, if_exists='replace', index=False)
                logger.info(f"    ✓ {name}: {len(df)} rows uploaded")
                written.append(name)
        return written

    def load_table(self, level: str, year: int) -> pd.DataFrame:
        """Load one estimate table"""
        return pd.read_sql_table(table_name(level, year), self.engine)

    def table_exists(self, level: str, year: int) -> bool:
        """Check if an estimate table exists"""
        inspector = inspect(self.engine)
        return table_name(level, year) in inspector.get_table_names()

    def list_available_years(self) -> Dict[int, List[str]]:
        """
        List years with stored estimates.

        Returns:
            Dict with years as keys and the stored levels as values
        """
        inspector = inspect(self.engine)

        years: Dict[int, List[str]] = {}
        for name in inspector.get_table_names():
            match = TABLE_PATTERN.match(name)
            if match:
                level, year = match.group(1), int(match.group(2))
                years.setdefault(year, []).append(level)

        return {year: sorted(levels) for year, levels in sorted(years.items())}


# Global cached store instances
_store_cache: Dict[str, ResultStore] = {}


def get_store(connection_string: Optional[str] = None) -> ResultStore:
    """
    Get a cached ResultStore instance.

    Args:
        connection_string: Database connection string

    Returns:
        Cached ResultStore instance
    """
    cache_key = connection_string or os.getenv('DATABASE_URL', 'default')

    if cache_key not in _store_cache:
        _store_cache[cache_key] = ResultStore(connection_string)

    return _store_cache[cache_key]
