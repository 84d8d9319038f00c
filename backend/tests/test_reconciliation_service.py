# Overview: Pytest coverage for the end-of-day reconciliation.

"""
Daily Reconciliation Tests

- one verification id per calendar day, a new one the next day
- verification lines converge (upsert), never duplicate
- a line already consumed by a bill cannot be changed
- malformed lines are counted and skipped, the rest commit
- raw deliveries, payments and cash reports are stamped with the day's id
"""

from datetime import datetime, time, timedelta

import pytest

from dailyops.models import (
    CashInHandRecord,
    DeliveryRecord,
    PaymentRecord,
    VerificationBatch,
    VerifiedDeliveryRecord,
)
from dailyops.services import billing_service, cash_service, delivery_service, reconciliation_service
from dailyops.validation import ValidationError


def _line(worker, customer, inventory, **overrides):
    line = {
        "worker_id": worker.id,
        "customer_id": customer.id,
        "inventory_id": inventory.id,
        "product_name": "Milk 500ml",
        "delivered_quantity": 10,
        "bill": 40000,
        "is_collected": False,
    }
    line.update(overrides)
    return line


@pytest.fixture
def noon(today):
    return datetime.combine(today, time(12, 0))


class TestVerificationId:
    def test_same_day_submissions_share_id(
        self, db_session, worker, customer, b2b_customer, milk_inventory, noon
    ):
        first = reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory)], cash_data=[], verified_by="admin", now=noon
        )
        second = reconciliation_service.submit_verification(
            deliveries=[_line(worker, b2b_customer, milk_inventory)],
            cash_data=[],
            verified_by="admin",
            now=noon + timedelta(hours=3),
        )

        assert first.verification_id == second.verification_id
        ids = {r.verification_id for r in db_session.query(VerifiedDeliveryRecord)}
        assert ids == {first.verification_id}

    def test_next_day_gets_new_id(self, db_session, worker, customer, milk_inventory, noon):
        first = reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory)], cash_data=[], verified_by="admin", now=noon
        )
        third = reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory)],
            cash_data=[],
            verified_by="admin",
            now=noon + timedelta(days=1),
        )

        assert third.verification_id != first.verification_id
        assert db_session.query(VerifiedDeliveryRecord).count() == 2

    def test_id_survives_a_submission_without_lines(self, db_session, worker, customer, milk_inventory, noon):
        empty = reconciliation_service.submit_verification(deliveries=[], cash_data=[], verified_by="admin", now=noon)
        later = reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory)],
            cash_data=[],
            verified_by="admin",
            now=noon + timedelta(minutes=5),
        )

        assert empty.verification_id == later.verification_id
        assert db_session.query(VerificationBatch).count() == 1


class TestUpsertConvergence:
    def test_resubmitted_line_updates_in_place(self, db_session, worker, customer, milk_inventory, noon):
        reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory, bill=40000)], cash_data=[], verified_by="admin", now=noon
        )
        result = reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory, bill=36000, delivered_quantity=9)],
            cash_data=[],
            verified_by="supervisor",
            now=noon + timedelta(hours=1),
        )

        assert result.processed_deliveries == 1
        row = db_session.query(VerifiedDeliveryRecord).one()
        assert row.bill_paise == 36000
        assert row.delivered_qty == 9
        assert row.verified_by == "supervisor"

    def test_repeated_key_in_one_submission_counts_once(
        self, db_session, worker, customer, b2b_customer, milk_inventory, noon
    ):
        result = reconciliation_service.submit_verification(
            deliveries=[
                _line(worker, customer, milk_inventory, bill=40000),
                _line(worker, b2b_customer, milk_inventory, bill=100000, delivered_quantity=25),
                _line(worker, customer, milk_inventory, bill=38000, delivered_quantity=9),
            ],
            cash_data=[],
            verified_by="admin",
            now=noon,
        )

        assert result.processed_deliveries == 2
        assert result.processed_deliveries == db_session.query(VerifiedDeliveryRecord).count()
        row = db_session.query(VerifiedDeliveryRecord).filter_by(customer_id=customer.id).one()
        assert row.bill_paise == 38000
        assert row.delivered_qty == 9


class TestBilledLinesAreFrozen:
    def test_resubmitting_a_billed_line_fails_and_keeps_the_bill_whole(
        self, db_session, worker, customer, b2b_customer, milk_inventory, noon, today
    ):
        reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory, bill=40000)], cash_data=[], verified_by="admin", now=noon
        )
        bill = billing_service.generate_bill(
            customer_id=customer.id, start_date=today, end_date=today, created_by="admin", renderer=lambda data: b"doc"
        ).bill

        result = reconciliation_service.submit_verification(
            deliveries=[
                _line(worker, customer, milk_inventory, bill=99900, is_collected=True),
                _line(worker, b2b_customer, milk_inventory, bill=20000),
            ],
            cash_data=[],
            verified_by="admin",
            now=noon + timedelta(hours=1),
        )

        assert result.processed_deliveries == 1
        assert result.failed_deliveries == 1
        assert result.errors[0]["index"] == 0
        assert "already billed" in result.errors[0]["error"]

        billed = db_session.query(VerifiedDeliveryRecord).filter_by(bill_id=bill.id).all()
        for row in billed:
            db_session.refresh(row)
        assert [(r.bill_paise, r.is_collected, r.verified_at) for r in billed] == [(40000, False, noon)]
        assert sum(r.bill_paise for r in billed) == bill.total_amount_paise


class TestPartialFailures:
    def test_bad_lines_are_counted_and_skipped(
        self, db_session, worker, customer, b2b_customer, milk_inventory, noon
    ):
        result = reconciliation_service.submit_verification(
            deliveries=[
                _line(worker, customer, milk_inventory),
                _line(worker, b2b_customer, milk_inventory, bill=-1),
                _line(worker, b2b_customer, milk_inventory, customer_id=9999),
                {"worker_id": worker.id},
                "not a line",
            ],
            cash_data=[],
            verified_by="admin",
            now=noon,
        )

        assert result.processed_deliveries == 1
        assert result.failed_deliveries == 4
        assert [e["index"] for e in result.errors] == [1, 2, 3, 4]
        assert db_session.query(VerifiedDeliveryRecord).count() == 1

    def test_missing_verified_by(self, db_session):
        with pytest.raises(ValidationError):
            reconciliation_service.submit_verification(deliveries=[], cash_data=[], verified_by="  ")

    def test_deliveries_must_be_a_list(self, db_session):
        with pytest.raises(ValidationError):
            reconciliation_service.submit_verification(deliveries={"x": 1}, cash_data=[], verified_by="admin")


class TestStamping:
    def test_stamps_deliveries_payments_and_cash(
        self, db_session, worker, other_worker, customer, b2b_customer, milk_inventory, curd_inventory
    ):
        delivery_service.record_delivery(
            worker_id=worker.id, customer_id=customer.id, inventory_id=milk_inventory.id,
            quantity=10, bill_paise=40000, price_was_customized=False, actor="worker1",
        )
        delivery_service.record_delivery(
            worker_id=worker.id, customer_id=b2b_customer.id, inventory_id=curd_inventory.id,
            quantity=2, bill_paise=5000, price_was_customized=False, actor="worker1",
        )
        cash_service.report_cash_in_hand(worker_id=worker.id, amount_paise=40000)

        result = reconciliation_service.submit_verification(
            deliveries=[_line(worker, customer, milk_inventory)],
            cash_data=[
                {"worker_id": worker.id, "actual_amount": 39500},
                {"worker_id": other_worker.id, "actual_amount": 100},
            ],
            verified_by="admin",
        )

        assert result.updated_delivery_records == 1
        assert result.updated_payment_records == 1
        assert result.updated_cash_records == 1
        assert result.unmatched_cash_workers == [other_worker.id]

        milk_delivery = db_session.query(DeliveryRecord).filter_by(inventory_id=milk_inventory.id).one()
        curd_delivery = db_session.query(DeliveryRecord).filter_by(inventory_id=curd_inventory.id).one()
        assert milk_delivery.verification_id == result.verification_id
        assert curd_delivery.verification_id is None
        assert db_session.query(PaymentRecord).filter_by(delivery_id=milk_delivery.id).one().verification_id == result.verification_id

        cash = db_session.query(CashInHandRecord).filter_by(worker_id=worker.id).one()
        assert cash.actual_paise == 39500
        assert cash.variance_paise == -500
        assert cash.verification_id == result.verification_id
        assert db_session.query(CashInHandRecord).count() == 1


def test_overview_lists_day_lines(db_session, worker, customer, milk_inventory, today):
    delivery_service.record_delivery(
        worker_id=worker.id, customer_id=customer.id, inventory_id=milk_inventory.id,
        quantity=10, bill_paise=40000, price_was_customized=True, actor="worker1",
    )

    overview = reconciliation_service.get_daily_deliveries_overview(today)

    assert overview["verified"] is False
    assert overview["total_bill_paise"] == 40000
    line = overview["deliveries"][0]
    assert line["worker_name"] == "Ramesh Patel"
    assert line["product_name"] == "Milk 500ml"
    assert line["is_collected"] is True
