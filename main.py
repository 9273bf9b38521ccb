# main.py
# Role: Application entry point for the finance dashboard.
#       Configures logging, creates database tables, seeds the default
#       categories, and registers all route modules.

"""
Main FastAPI app for the finance dashboard.

Here we only:
- configure logging
- create DB tables and seed default categories
- create the FastAPI app
- include route modules
"""

import logging

from fastapi import FastAPI

from db import Base, SessionLocal, engine
from app.config import LOG_LEVEL
from app.routes_analyze import router as analyze_router
from app.routes_categories import router as categories_router
from app.routes_dashboard import router as dashboard_router
from app.routes_root import router as root_router
from app.routes_rules import router as rules_router
from app.routes_team import router as team_router
from app.routes_transactions import router as transactions_router
from app.routes_upload import router as upload_router
from app.services.categories import seed_default_categories

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finance")


# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

# Create database tables (only if they don't exist yet).
Base.metadata.create_all(bind=engine)

with SessionLocal() as _db:
    seed_default_categories(_db)

# FastAPI application instance
app = FastAPI(title="Finance Dashboard")

# -------------------------------------------------------------------
# Include routers
# -------------------------------------------------------------------

# Root / health
app.include_router(root_router)

# CSV upload -> preview -> save flow
app.include_router(upload_router)

# Optional AI-assisted single-file analysis
app.include_router(analyze_router)

# Ledger list, export, bulk edits, deletes, statements
app.include_router(transactions_router)

# Categorization rules and retroactive apply
app.include_router(rules_router)

# Category set
app.include_router(categories_router)

# Team members / payroll
app.include_router(team_router)

# Profit overview
app.include_router(dashboard_router)

logger.info("Finance dashboard started")
