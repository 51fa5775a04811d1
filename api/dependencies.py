"""
FastAPI Dependencies

Shared dependencies for dependency injection.
"""

from typing import Annotated
from fastapi import Depends, HTTPException

from multigen.database import ResultStore, get_store
from .config import Settings, get_settings


def get_result_store(
    settings: Annotated[Settings, Depends(get_settings)]
) -> ResultStore:
    """
    Get cached ResultStore instance.
    
    One store is created per database URL and reused for all requests.
    """
    try:
        return get_store(settings.database_url)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to connect to database: {str(e)}"
        )
