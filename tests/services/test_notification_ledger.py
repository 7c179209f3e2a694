"""
Tests for NotificationLedger.

The unique (contract_id, kind, year_key) constraint is the only
deduplication mechanism; ``record`` absorbs a conflicting insert.
"""

from datetime import date

import pytest

from lease_kernel.domain.dtos import NotificationKind
from lease_kernel.services.notification_ledger import NotificationLedger


@pytest.fixture
def ledger(session, deterministic_clock):
    return NotificationLedger(session, deterministic_clock)


@pytest.fixture
def contract(create_contract):
    return create_contract(date(2025, 1, 15), date(2028, 1, 15))


class TestWasSent:

    def test_empty_ledger(self, ledger, contract):
        assert not ledger.was_sent(contract.id, NotificationKind.CONTRACT_EXPIRY)
        assert not ledger.was_sent(contract.id, NotificationKind.ANNUITY_EXPIRY, 2026)

    def test_after_record(self, ledger, contract):
        ledger.record(contract.id, NotificationKind.ANNUITY_EXPIRY, 2026, True, False)

        assert ledger.was_sent(contract.id, NotificationKind.ANNUITY_EXPIRY, 2026)
        assert not ledger.was_sent(contract.id, NotificationKind.ANNUITY_EXPIRY, 2027)
        assert not ledger.was_sent(contract.id, NotificationKind.CONTRACT_EXPIRY)

    def test_kind_year_mismatch_rejected(self, ledger, contract):
        with pytest.raises(ValueError):
            ledger.was_sent(contract.id, NotificationKind.ANNUITY_EXPIRY, None)


class TestRecord:

    def test_inserts_with_channel_flags(self, ledger, contract):
        assert ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, None, False, True)

        (row,) = ledger.list_for_contract(contract.id)
        assert row.kind == NotificationKind.CONTRACT_EXPIRY
        assert row.year is None
        assert row.sent_to_subject is False
        assert row.sent_to_internal is True

    def test_duplicate_contract_expiry_absorbed(self, ledger, contract, captured_logs):
        ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, None, True, True)

        assert ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, None, True, False) is False

        assert len(ledger.list_for_contract(contract.id)) == 1
        assert "notification_ledger_conflict" in [r["message"] for r in captured_logs()]

    def test_duplicate_annuity_year_absorbed(self, ledger, contract):
        ledger.record(contract.id, NotificationKind.ANNUITY_EXPIRY, 2026, True, True)

        assert ledger.record(contract.id, NotificationKind.ANNUITY_EXPIRY, 2026, True, True) is False
        assert ledger.record(contract.id, NotificationKind.ANNUITY_EXPIRY, 2027, True, True) is True
        assert len(ledger.list_for_contract(contract.id)) == 2

    def test_conflict_keeps_outer_transaction_usable(self, ledger, contract, session):
        ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, None, True, True)
        ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, None, True, True)

        contract.address = "Via Verdi 3"
        session.flush()
        assert ledger.was_sent(contract.id, NotificationKind.CONTRACT_EXPIRY)

    def test_no_successful_channel_rejected(self, ledger, contract):
        with pytest.raises(ValueError):
            ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, None, False, False)

    def test_year_on_contract_expiry_rejected(self, ledger, contract):
        with pytest.raises(ValueError):
            ledger.record(contract.id, NotificationKind.CONTRACT_EXPIRY, 2026, True, True)
