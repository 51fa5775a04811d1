"""
Multigenerational Household Estimates API

Read-only REST API serving county and state estimates written by
scripts/run_multigen.py --output database.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import estimates, health

# Configure logging
logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO'),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ============================================
# Application Lifespan
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""
    logger.info("Starting Multigenerational Household Estimates API")
    
    yield
    
    logger.info("Shutting down Multigenerational Household Estimates API")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Multigenerational Household Estimates API",
    description="""
    Weighted estimates of multigenerational households by race/ethnicity
    of the household head, from census microdata.
    
    ## Endpoints
    
    - **GET /api/v1/estimates/{year}/counties** - County estimates, highest rate first
    - **GET /api/v1/estimates/{year}/states** - State estimates
    - **GET /api/v1/available-years** - Years with stored estimates
    - **GET /health** - Health check
    
    Rates are fractions (0.625 = 62.5%). A rate is null when its
    denominator is zero, e.g. a county with no Asian-headed households.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(','),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(estimates.router)


# ============================================
# Health Endpoints
# ============================================

@app.get("/health", tags=["Health"])
async def root_health():
    """Liveness check for load balancers"""
    return {"status": "ok"}


@app.get("/", tags=["Health"])
async def root():
    """API information"""
    return {
        "name": "Multigenerational Household Estimates API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "counties": "GET /api/v1/estimates/{year}/counties",
            "states": "GET /api/v1/estimates/{year}/states",
            "years": "GET /api/v1/available-years"
        }
    }


# Run with: uvicorn api.main:app --port 8000
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
