import os

# Keep the app's module-level engine off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["AI_PARSE_ENABLED"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables on Base)
from db import Base
from app.deps import get_db, get_rate_cache
from app.services.categories import seed_default_categories
from app.services.exchange_rates import ExchangeRateCache

TEST_RATES = {"USD": 1.0, "EUR": 0.8, "GBP": 0.5, "BRL": 5.0}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def rate_cache():
    return ExchangeRateCache(fetcher=lambda: dict(TEST_RATES))


@pytest.fixture
def client(engine, rate_cache):
    from main import app

    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as s:
        seed_default_categories(s)

    def override_get_db():
        s = Session()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_cache] = lambda: rate_cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
