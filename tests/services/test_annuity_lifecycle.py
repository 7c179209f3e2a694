"""
Tests for AnnuityLifecycleService -- the transaction-owning facade.

Every call commits or rolls back on its own; assertions read back through
the facade in fresh transactions.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lease_kernel.exceptions import (
    AnnuitiesAlreadyGeneratedError,
    AnnuityAlreadyPaidError,
    ContractNotFoundError,
    InvalidContractDatesError,
    StoreUnavailableError,
)
from lease_kernel.domain.dtos import NotificationKind
from lease_services.annuity_lifecycle import AnnuityLifecycleService


class TestAnnuityLifecycle:

    def test_create_then_list(self, lifecycle, committed_contract):
        created = committed_contract(date(2025, 1, 15), date(2028, 1, 15))

        listed = lifecycle.list_annuities(created.contract.contract_id)

        assert [a.year for a in listed] == [2026, 2027]
        assert listed == created.annuities

    def test_generate_on_existing_rejected(self, lifecycle, committed_contract):
        cid = committed_contract(date(2025, 1, 15), date(2028, 1, 15)).contract.contract_id

        with pytest.raises(AnnuitiesAlreadyGeneratedError):
            lifecycle.generate_annuities(cid)

    def test_recalculate_after_extension_preserves_payments(self, lifecycle, committed_contract):
        cid = committed_contract(date(2025, 1, 15), date(2028, 1, 15)).contract.contract_id
        lifecycle.mark_annuity_paid(cid, 2026)

        lifecycle.update_contract(cid, end_date=date(2030, 1, 15))
        annuities = lifecycle.recalculate_annuities(cid)

        assert {a.year: a.is_paid for a in annuities} == {
            2026: True, 2027: False, 2028: False, 2029: False,
        }

    def test_double_payment_rolls_back_cleanly(self, lifecycle, committed_contract):
        cid = committed_contract(date(2025, 1, 15), date(2029, 1, 15)).contract.contract_id
        lifecycle.mark_annuity_paid(cid, 2027)

        with pytest.raises(AnnuityAlreadyPaidError):
            lifecycle.mark_annuity_paid(cid, 2027)

        snapshot = lifecycle.get_contract(cid)
        assert snapshot.contract.last_annuity_paid_year == 2027
        assert [a.year for a in snapshot.annuities if a.is_paid] == [2027]

    def test_failed_update_leaves_annuities_untouched(self, lifecycle, committed_contract):
        created = committed_contract(date(2025, 1, 15), date(2028, 1, 15))
        cid = created.contract.contract_id

        with pytest.raises(InvalidContractDatesError):
            lifecycle.update_contract(cid, start_date=date(2029, 1, 1))

        assert lifecycle.list_annuities(cid) == created.annuities

    def test_list_unknown_contract(self, lifecycle):
        with pytest.raises(ContractNotFoundError):
            lifecycle.list_annuities(uuid4())

    def test_get_unknown_contract(self, lifecycle):
        with pytest.raises(ContractNotFoundError):
            lifecycle.get_contract(uuid4())

    def test_delete_contract(self, lifecycle, committed_contract):
        cid = committed_contract(date(2025, 1, 15), date(2028, 1, 15)).contract.contract_id

        lifecycle.delete_contract(cid)

        with pytest.raises(ContractNotFoundError):
            lifecycle.list_annuities(cid)
        assert lifecycle.list_notifications(cid) == ()

    def test_expiring_in_month(self, lifecycle, committed_contract):
        cid = committed_contract(date(2024, 3, 10), date(2027, 3, 10)).contract.contract_id

        items = lifecycle.expiring_in_month(2025, 3)

        assert [(i.contract_id, i.kind, i.annuity_year) for i in items] == [
            (cid, NotificationKind.ANNUITY_EXPIRY, 2025),
        ]


class TestStoreUnavailable:

    def test_unreachable_store_maps_to_store_unavailable(self, tmp_path, deterministic_clock):
        missing = tmp_path / "no-such-dir" / "lease.db"
        engine = create_engine(f"sqlite:///{missing}")
        service = AnnuityLifecycleService(
            sessionmaker(bind=engine), deterministic_clock,
        )

        with pytest.raises(StoreUnavailableError) as exc_info:
            service.list_annuities(uuid4())

        assert exc_info.value.operation == "list_annuities"
        assert exc_info.value.code == "STORE_UNAVAILABLE"
        engine.dispose()

    def test_create_contract_on_unreachable_store(self, tmp_path, deterministic_clock):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'lease.db'}")
        service = AnnuityLifecycleService(sessionmaker(bind=engine), deterministic_clock)

        with pytest.raises(StoreUnavailableError):
            service.create_contract(
                owner_id=uuid4(),
                tenant_id=uuid4(),
                start_date=date(2025, 1, 1),
                end_date=date(2027, 1, 1),
                monthly_rent=Decimal("600"),
            )
        engine.dispose()
