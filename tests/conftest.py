"""Test configuration and fixtures."""

from typing import Generator

import pytest
from sqlalchemy import Engine

from michishirube.data.models import Task
from michishirube.db.base import create_store_engine
from michishirube.db.repository import SQLiteRepository


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """A fresh, unmigrated file database per test."""
    engine = create_store_engine(f"sqlite:///{tmp_path / 'michishirube.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def repo(engine) -> SQLiteRepository:
    """A migrated repository on the per-test database."""
    return SQLiteRepository(engine)


@pytest.fixture
def sample_task(repo) -> Task:
    """A stored task with tags and blockers."""
    task = Task(
        title="Fix memory leak in pod controller",
        jira_id="OCPBUGS-1234",
        priority="high",
        tags=["k8s", "memory"],
        blockers=["waiting for review"],
    )
    return repo.create_task(task)
