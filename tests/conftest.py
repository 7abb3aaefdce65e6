"""Shared fixtures for Mission Control tests."""

from datetime import date

import pytest

from mission_control.repository import JsonFileRepository
from mission_control.store import DocumentStore

TODAY = date(2026, 3, 10)


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "data.json"


@pytest.fixture
def store(data_path):
    return DocumentStore(JsonFileRepository(data_path))


@pytest.fixture
def today():
    return TODAY
