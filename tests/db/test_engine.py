"""Tests for engine initialization and transaction scopes (lease_kernel/db/engine.py)."""

from datetime import date

import pytest
from sqlalchemy import func, inspect, select

from lease_config.loader import parse_config
from lease_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    transaction_scope,
)
from lease_kernel.domain.dtos import PartyRole
from lease_kernel.models.party import PartyModel
from lease_notify.runner import run_expiry_dispatch


@pytest.fixture
def module_engine(tmp_path):
    """Module-level engine on a SQLite file, reset afterwards."""
    url = f"sqlite:///{tmp_path / 'module.db'}"
    engine = init_engine_from_url(url)
    create_tables()
    yield url, engine
    reset_engine()


class TestModuleEngine:

    def test_sqlite_url_initializes_engine_and_tables(self, module_engine):
        _, engine = module_engine

        assert get_engine() is engine
        assert engine.dialect.name == "sqlite"
        assert {"parties", "contracts", "annuities", "notifications"} <= set(
            inspect(engine).get_table_names()
        )

    def test_reset_forgets_engine(self, module_engine):
        reset_engine()

        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session_factory()


class TestTransactionScope:

    def _count_parties(self, factory):
        with transaction_scope(factory) as session:
            return session.execute(select(func.count()).select_from(PartyModel)).scalar_one()

    def test_commits_on_success(self, module_engine):
        factory = get_session_factory()

        with transaction_scope(factory) as session:
            session.add(PartyModel(role=PartyRole.OWNER.value, name="Anna", surname="Neri"))

        assert self._count_parties(factory) == 1

    def test_rolls_back_on_exception(self, module_engine):
        factory = get_session_factory()

        with pytest.raises(RuntimeError):
            with transaction_scope(factory) as session:
                session.add(PartyModel(role=PartyRole.OWNER.value, name="Anna", surname="Neri"))
                session.flush()
                raise RuntimeError("abort")

        assert self._count_parties(factory) == 0


class StubChannel:
    def send_internal_reminder(self, snapshot, kind, year=None):
        return True

    def send_subject_reminder(self, snapshot, kind, year=None):
        return True


class TestRunnerWithConfiguredDatabase:

    def test_dispatch_opens_configured_database(self, module_engine, deterministic_clock):
        url, _ = module_engine
        config = parse_config({"database": {"url": url}})

        result = run_expiry_dispatch(config, channel=StubChannel(), clock=deterministic_clock)

        assert result.target_date == date(2025, 1, 8)
        assert result.processed == 0
