"""Pytest configuration."""
import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

# 앱 설정은 import 시점에 읽히므로 먼저 지정
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET", "test-secret-for-learnpath-unit-tests-0123456789")

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

from learnpath.services.progression import PlanProgressionEngine  # noqa: E402
from tests.fakes import InMemoryPlanStore  # noqa: E402

FIXED_NOW = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def project_root():
    return PROJECT_ROOT


@pytest.fixture
def store():
    return InMemoryPlanStore()


@pytest.fixture
def engine(store):
    return PlanProgressionEngine(store, clock=lambda: FIXED_NOW)
