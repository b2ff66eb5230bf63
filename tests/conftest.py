"""Shared pytest fixtures for reportbridge tests."""

import tempfile
import os
from pathlib import Path
import pytest

from reportbridge.database.factories import create_sqlite_database
from reportbridge.domain.code_mapping_service import CodeMappingService
from reportbridge.domain.mapping_import import MappingImportService
from reportbridge.domain.rule_set import RuleSetService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def code_mapping_service(temp_db):
    """Create a CodeMappingService with a temporary database."""
    return CodeMappingService(temp_db)


@pytest.fixture
def rule_set_service(temp_db):
    """Create a RuleSetService with a temporary database."""
    return RuleSetService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a MappingImportService with a temporary database."""
    return MappingImportService(temp_db)


@pytest.fixture
def loaded_mappings(import_service, fixtures_dir):
    """Import the sample code mappings and rules."""
    import_service.import_code_mappings(str(fixtures_dir / "code_mappings.csv"))
    import_service.import_rules(str(fixtures_dir / "rules.csv"))
    return import_service


@pytest.fixture
def sample_report(fixtures_dir):
    """Return the text of the sample report."""
    return (fixtures_dir / "sample_report.txt").read_text(encoding="utf-8")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
