# Overview: Pytest coverage for idempotent delivery recording.

from datetime import datetime, timedelta

import pytest

from dailyops.models import DeliveryRecord, PaymentRecord
from dailyops.services import delivery_service
from dailyops.validation import NotFoundError, ValidationError


def _deliver(worker, customer, inventory, **overrides):
    params = dict(
        worker_id=worker.id,
        customer_id=customer.id,
        inventory_id=inventory.id,
        quantity=10,
        bill_paise=40000,
        price_was_customized=False,
        actor="worker1",
    )
    params.update(overrides)
    return delivery_service.record_delivery(**params)


class TestRecordDelivery:
    def test_creates_delivery_and_payment(self, db_session, worker, customer, milk_inventory):
        outcome = _deliver(worker, customer, milk_inventory)

        assert outcome.success is True
        assert outcome.is_duplicate is False
        assert outcome.data["collection_status"] == "Pending Collection"
        assert outcome.data["collection_reason"] == "Standard price - pending collection"
        assert outcome.data["product_name"] == "Milk 500ml"

        delivery = db_session.query(DeliveryRecord).one()
        payment = db_session.query(PaymentRecord).one()
        assert delivery.delivered_qty == 10
        assert delivery.actor_login == "worker1"
        assert payment.delivery_id == delivery.id
        assert payment.bill_paise == 40000
        assert payment.is_collected is False

    def test_custom_price_is_collected_on_spot(self, db_session, worker, customer, milk_inventory):
        outcome = _deliver(worker, customer, milk_inventory, price_was_customized=True)

        assert outcome.data["collection_status"] == "Collected"
        assert outcome.data["collection_reason"] == "Custom price - collected on spot"
        assert db_session.query(PaymentRecord).one().is_collected is True

    def test_second_submission_is_duplicate_without_writes(self, db_session, worker, customer, milk_inventory):
        _deliver(worker, customer, milk_inventory)
        outcome = _deliver(worker, customer, milk_inventory, quantity=12, bill_paise=48000)

        assert outcome.success is True
        assert outcome.is_duplicate is True
        assert outcome.data is None
        assert db_session.query(DeliveryRecord).count() == 1
        assert db_session.query(PaymentRecord).one().bill_paise == 40000

    def test_duplicate_even_from_another_worker(self, db_session, worker, other_worker, customer, milk_inventory):
        _deliver(worker, customer, milk_inventory)
        outcome = _deliver(other_worker, customer, milk_inventory)

        assert outcome.is_duplicate is True
        assert db_session.query(DeliveryRecord).count() == 1

    def test_other_product_same_customer_is_not_duplicate(
        self, db_session, worker, customer, milk_inventory, curd_inventory
    ):
        _deliver(worker, customer, milk_inventory)
        outcome = _deliver(worker, customer, curd_inventory, quantity=2, bill_paise=5000)

        assert outcome.is_duplicate is False
        assert db_session.query(DeliveryRecord).count() == 2

    def test_next_day_is_a_new_delivery(self, db_session, worker, customer, milk_inventory, today):
        morning = datetime.combine(today, datetime.min.time()) + timedelta(hours=7)
        _deliver(worker, customer, milk_inventory, now=morning)
        outcome = _deliver(worker, customer, milk_inventory, now=morning + timedelta(days=1))

        assert outcome.is_duplicate is False
        assert db_session.query(DeliveryRecord).count() == 2

    def test_constraint_backstop_reports_duplicate(self, db_session, worker, customer, milk_inventory, monkeypatch):
        """A twin request that slips past the lookup hits the unique constraint."""
        _deliver(worker, customer, milk_inventory)

        calls = []
        real_find = delivery_service._find_existing

        def _miss_first(*args):
            calls.append(args)
            return None if len(calls) == 1 else real_find(*args)

        monkeypatch.setattr(delivery_service, "_find_existing", _miss_first)
        outcome = _deliver(worker, customer, milk_inventory)

        assert outcome.is_duplicate is True
        assert db_session.query(DeliveryRecord).count() == 1
        assert db_session.query(PaymentRecord).count() == 1

    @pytest.mark.parametrize("field,value", [("quantity", 0), ("quantity", -1), ("bill_paise", 0), ("quantity", 1.5)])
    def test_invalid_amounts(self, db_session, worker, customer, milk_inventory, field, value):
        with pytest.raises(ValidationError):
            _deliver(worker, customer, milk_inventory, **{field: value})
        assert db_session.query(DeliveryRecord).count() == 0

    def test_unknown_customer(self, db_session, worker, milk_inventory):
        class Ghost:
            id = 4242

        with pytest.raises(NotFoundError, match="Customer with ID 4242"):
            _deliver(worker, Ghost, milk_inventory)
        assert db_session.query(DeliveryRecord).count() == 0

    def test_unknown_inventory(self, db_session, worker, customer):
        class Ghost:
            id = 4242

        with pytest.raises(NotFoundError):
            _deliver(worker, customer, Ghost)


class TestDeliveryViews:
    def test_summary(self, db_session, worker, customer, b2b_customer, milk_inventory, today):
        _deliver(worker, customer, milk_inventory)
        _deliver(worker, b2b_customer, milk_inventory, quantity=30, bill_paise=120000, price_was_customized=True)

        summary = delivery_service.get_delivery_summary(today)

        assert summary["total_deliveries"] == 2
        assert summary["total_bill_paise"] == 160000
        assert summary["collected_paise"] == 120000
        assert summary["pending_paise"] == 40000
        assert summary["b2b_customers"] == 1
        assert summary["b2c_customers"] == 1

    def test_worker_deliveries(self, db_session, worker, other_worker, customer, b2b_customer, milk_inventory, today):
        _deliver(worker, customer, milk_inventory)
        _deliver(other_worker, b2b_customer, milk_inventory)

        view = delivery_service.get_worker_deliveries(worker.id, today)

        assert view["total_deliveries"] == 1
        assert view["total_paise"] == 40000
        assert view["deliveries"][0]["customer_name"] == "Anita Sharma"
        assert view["deliveries"][0]["collection_status"] == "Pending"
