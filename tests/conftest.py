"""
Pytest fixtures for the lease engine test suite.

Provides:
- File-backed SQLite engines (one per test) so services, selectors and the
  multi-transaction dispatcher all see committed data
- Deterministic clock
- Party / contract factories
- Captured structured logs

Tests never hold a transaction open while code under test opens its own
sessions on the same database file.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from lease_kernel.db.base import Base
from lease_kernel.db.engine import transaction_scope
from lease_kernel.domain.clock import DeterministicClock
from lease_kernel.domain.dtos import PartyRole
from lease_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from lease_kernel.models.contract import ContractModel
from lease_kernel.models.party import PartyModel
from lease_kernel.services.notification_ledger import NotificationLedger
from lease_services.annuity_lifecycle import AnnuityLifecycleService

import lease_kernel.models  # noqa: F401  (registers tables)

# 2025-01-01 08:00 UTC; with the default 7-day horizon the scan targets 2025-01-08
TEST_NOW = datetime(2025, 1, 1, 8, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture lease_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.recalculate_annuities(contract_id)
            logs = captured_logs()
            assert any(r["message"] == "annuities_recalculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("lease_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite database file with all tables."""
    eng = create_engine(f"sqlite:///{tmp_path / 'lease.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """Session for flush-only service tests; rolled back afterwards."""
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def lifecycle(session_factory, deterministic_clock) -> AnnuityLifecycleService:
    return AnnuityLifecycleService(session_factory, deterministic_clock)


@pytest.fixture
def create_party(session: Session):
    """Factory inserting a party into the test session."""

    def _create_party(
        role: PartyRole = PartyRole.OWNER,
        name: str = "Mario",
        surname: str = "Rossi",
        email: str | None = "owner@example.com",
        phone: str | None = None,
    ) -> PartyModel:
        party = PartyModel(
            role=role.value, name=name, surname=surname, email=email, phone=phone,
        )
        session.add(party)
        session.flush()
        return party

    return _create_party


@pytest.fixture
def create_contract(session: Session, create_party):
    """
    Factory inserting a contract row (without annuities) into the test session.

    Owner and tenant are created on the fly unless given.
    """

    def _create_contract(
        start_date: date = date(2025, 1, 15),
        end_date: date = date(2028, 1, 15),
        flat_rate_regime: bool = False,
        last_annuity_paid_year: int | None = None,
        owner: PartyModel | None = None,
        tenant: PartyModel | None = None,
        address: str | None = None,
    ) -> ContractModel:
        owner = owner or create_party(PartyRole.OWNER)
        tenant = tenant or create_party(PartyRole.TENANT, name="Luca", surname="Bianchi")
        contract = ContractModel(
            owner_id=owner.id,
            tenant_id=tenant.id,
            start_date=start_date,
            end_date=end_date,
            flat_rate_regime=flat_rate_regime,
            last_annuity_paid_year=last_annuity_paid_year,
            monthly_rent=Decimal("850.00"),
            address=address,
        )
        session.add(contract)
        session.flush()
        return contract

    return _create_contract


@pytest.fixture
def committed_contract(lifecycle):
    """
    Factory creating a contract (and its annuities) through the lifecycle
    service, committed so other sessions can see it.
    """

    def _committed_contract(
        start_date: date,
        end_date: date,
        flat_rate_regime: bool = False,
        last_annuity_paid_year: int | None = None,
        owner_email: str | None = "owner@example.com",
        address: str | None = "Via Roma 1, Milano",
    ):
        owner = lifecycle.register_party(
            PartyRole.OWNER, "Mario", "Rossi", email=owner_email,
        )
        tenant = lifecycle.register_party(
            PartyRole.TENANT, "Luca", "Bianchi", email="tenant@example.com",
        )
        return lifecycle.create_contract(
            owner_id=owner.party_id,
            tenant_id=tenant.party_id,
            start_date=start_date,
            end_date=end_date,
            monthly_rent=Decimal("900.00"),
            flat_rate_regime=flat_rate_regime,
            last_annuity_paid_year=last_annuity_paid_year,
            address=address,
        )

    return _committed_contract


@pytest.fixture
def ledger_rows(session_factory):
    """Read the notification ledger in a fresh, short transaction."""

    def _rows(contract_id):
        with transaction_scope(session_factory) as sess:
            return NotificationLedger(sess, DeterministicClock(TEST_NOW)).list_for_contract(
                contract_id,
            )

    return _rows

