"""FastAPI application entry point."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fips_reporting.api import auth, milestones, performance_metrics, product_allocations, reporting
from fips_reporting.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="FIPS Performance Reporting", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth.router, prefix="/auth", tags=["auth"])
# Metric library administration
app.include_router(performance_metrics.router, tags=["performance-metrics"])
app.include_router(product_allocations.router, tags=["product-allocations"])
# Monthly returns and product milestones
app.include_router(reporting.router, prefix="/reporting", tags=["reporting"])
app.include_router(milestones.router, tags=["milestones"])


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "FIPS Performance Reporting API"}
