"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Test database (SQLite in-memory for speed)
- A scripted model provider (no network, no tokens)
- Canned stage responses for a complete happy-path job
- Test client (FastAPI TestClient) wired to a fake pipeline
"""

import os

# Settings are read at import time; keep tests off the real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import json
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence, Union

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from screendoc.ai.monitoring import AIMonitor
from screendoc.ai.pipeline import DocumentationPipeline
from screendoc.ai.prompts.stage_prompts import (
    ANALYST_ROLE,
    BUILDER_ROLE,
    CONTENT_ROLE,
    PLANNER_ROLE,
    VALIDATOR_ROLE,
)
from screendoc.ai.providers.base import (
    AIProvider,
    AIResponse,
    ImageAttachment,
    ProviderType,
    TokenUsage,
)
from screendoc.ai.stages import (
    AnalysisStage,
    BuildStage,
    ContentStage,
    PlanningStage,
    ValidationStage,
)
from screendoc.ai.stages.contracts import JobContext, Screenshot
from screendoc.db.base import Base
from screendoc.db.session import get_db
from screendoc.deps import ServiceContainer, build_services
from screendoc.main import create_app
from screendoc.models import history_entry  # noqa: F401


# ---------------------------------------------------------------------------
# TEST DATABASE SETUP
# ---------------------------------------------------------------------------
# StaticPool keeps the same in-memory connection across all operations

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh tables for each test function."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ---------------------------------------------------------------------------
# SAMPLE DATA
# ---------------------------------------------------------------------------

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

ANALYSIS_RESPONSE = """Here is the analysis of the interface:
```json
{
  "elements": [
    {"id": "btn-open", "type": "button", "label": "Open"},
    {"id": "btn-save", "type": "button", "label": "Save"}
  ],
  "metadata": {"total_elements": 2}
}
```"""

CONTENT_RESPONSE = json.dumps({
    "tooltips": [
        {"element_id": "btn-open", "text": "Open a document"},
        {"element_id": "btn-save", "text": "Save the current document"},
    ],
    "workflows": [{"name": "Open and save", "steps": ["Click Open", "Click Save"]}],
})

BUILD_RESPONSE = """=== FILE: guide.html ===
<!DOCTYPE html>
<html><body><img src="screenshot.png"><div class="tooltip">Open a document</div></body></html>
=== END FILE ===
