import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def _memory_engine():
    return create_engine("sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    def _raise_error(bind):
        raise RuntimeError("inspection failed")

    monkeypatch.setattr(bootstrap, "find_schema_gaps", _raise_error)

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility(_memory_engine())


def test_find_schema_gaps_reports_missing_tables_and_columns():
    engine = _memory_engine()
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE teachers (id VARCHAR(36), school_id VARCHAR(36), name VARCHAR(200))"))

    missing_tables, missing_columns = bootstrap.find_schema_gaps(engine)

    assert missing_tables == ["rooms", "subjects", "timetable_entries"]
    assert missing_columns == {"teachers": ["is_active"]}


def test_create_all_satisfies_required_schema():
    engine = _memory_engine()
    bootstrap.Base.metadata.create_all(bind=engine)
    assert bootstrap.find_schema_gaps(engine) == ([], {})
