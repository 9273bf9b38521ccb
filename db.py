# db.py
# Role: Database bootstrap for the finance dashboard.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       Also ensures the on-disk database directory exists for the default SQLite URL.

"""
Database setup for the finance dashboard.

- Uses the URL from app.config.DATABASE_URL
  (default: SQLite at <project_root>/database/finance.db)
- Ensures the 'database' folder exists when the default location is used.
"""

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from app.config import DATABASE_URL, DB_DIR

connect_args = {}

if DATABASE_URL.startswith("sqlite"):
    os.makedirs(DB_DIR, exist_ok=True)  # ensure folder exists
    # FastAPI handles requests on a thread pool
    connect_args["check_same_thread"] = False

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
)

# Standard session factory used via dependency injection (see app/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()
