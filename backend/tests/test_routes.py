# Overview: Pytest coverage for the JSON API envelopes and status codes.

from dailyops.models import DeliveryRecord


def _delivery_body(worker, customer, inventory, **overrides):
    body = {
        "worker_id": worker.id,
        "customer_id": customer.id,
        "inventory_id": inventory.id,
        "delivered_quantity": 10,
        "bill_amount": 40000,
        "is_price_customized": False,
        "actor": "worker1",
    }
    body.update(overrides)
    return body


class TestDeliveryRoutes:
    def test_record_then_duplicate(self, client, db_session, worker, customer, milk_inventory):
        body = _delivery_body(worker, customer, milk_inventory)

        first = client.post("/api/deliveries", json=body)
        second = client.post("/api/deliveries", json=body)

        assert first.status_code == 201
        assert first.get_json()["is_duplicate"] is False
        assert first.get_json()["data"]["collection_status"] == "Pending Collection"
        assert second.status_code == 200
        assert second.get_json()["success"] is True
        assert second.get_json()["is_duplicate"] is True
        assert db_session.query(DeliveryRecord).count() == 1

    def test_validation_envelope(self, client, db_session, worker, customer, milk_inventory):
        response = client.post("/api/deliveries", json=_delivery_body(worker, customer, milk_inventory, delivered_quantity=0))

        assert response.status_code == 400
        payload = response.get_json()
        assert payload["success"] is False
        assert payload["kind"] == "validation"
        assert "delivered_quantity" in payload["message"]

    def test_not_found_envelope(self, client, db_session, worker, customer, milk_inventory):
        response = client.post("/api/deliveries", json=_delivery_body(worker, customer, milk_inventory, customer_id=999))

        assert response.status_code == 404
        assert response.get_json()["kind"] == "not_found"

    def test_summary_bad_date(self, client, db_session):
        response = client.get("/api/deliveries/summary?date=16-10-2026")
        assert response.status_code == 400

    def test_request_id_is_echoed(self, client, db_session):
        response = client.get("/api/deliveries/summary", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestWorkerInventoryRoutes:
    def test_remaining_before_picked_is_404(self, client, db_session, worker, milk_inventory):
        response = client.post(
            "/api/worker-inventory/remaining",
            json={"worker_id": worker.id, "items": [{"inventory_id": milk_inventory.id, "quantity": 1}]},
        )
        assert response.status_code == 404

    def test_pick_remaining_and_summary(self, client, db_session, worker, milk_inventory):
        items = [{"inventory_id": milk_inventory.id, "quantity": 50}]
        assert client.post("/api/worker-inventory/picked", json={"worker_id": worker.id, "items": items}).status_code == 200

        over = client.post(
            "/api/worker-inventory/remaining",
            json={"worker_id": worker.id, "items": [{"inventory_id": milk_inventory.id, "quantity": 51}]},
        )
        assert over.status_code == 400

        ok = client.post(
            "/api/worker-inventory/remaining",
            json={"worker_id": worker.id, "items": [{"inventory_id": milk_inventory.id, "quantity": 38}]},
        )
        assert ok.status_code == 200
        assert ok.get_json()["data"][0]["remaining_qty"] == 38

        summary = client.get(f"/api/worker-inventory/{worker.id}/summary").get_json()["data"]
        assert summary["distributed_qty"] == 12

        history = client.get(f"/api/worker-inventory/{worker.id}/history", query_string={"days": 3}).get_json()["data"]
        assert history[0]["activities"][0]["remaining_qty"] == 38
        assert client.get(f"/api/worker-inventory/{worker.id}/history?days=-1").status_code == 400


class TestInventoryRoutes:
    def test_received_twice_conflicts(self, client, db_session, milk_inventory):
        url = f"/api/inventory/{milk_inventory.product_id}/received"

        assert client.post(url, json={"quantity": 60, "actor": "admin"}).status_code == 200
        response = client.post(url, json={"quantity": 60, "actor": "admin"})

        assert response.status_code == 409
        assert response.get_json()["kind"] == "conflict"

    def test_daily_inventory_calculates(self, client, db_session, milk, customer, subscribe):
        subscribe(customer, milk, quantity=4)

        payload = client.get("/api/inventory").get_json()

        assert payload["was_calculated"] is True
        assert payload["data"][0]["ordered_qty"] == 4

    def test_dates(self, client, db_session, milk_inventory, today):
        payload = client.get("/api/inventory/dates").get_json()

        assert payload["message"] == "Available dates retrieved successfully"
        assert payload["data"] == [today.isoformat()]


class TestVerificationAndBillRoutes:
    def test_full_flow(self, client, db_session, worker, customer, milk_inventory, today):
        client.post("/api/deliveries", json=_delivery_body(worker, customer, milk_inventory))
        client.post("/api/cash-in-hand", json={"worker_id": worker.id, "amount": 40000})

        overview = client.get("/api/verification/overview").get_json()["data"]
        line = overview["deliveries"][0]

        verification = client.post("/api/verification", json={
            "deliveries": [{
                "worker_id": line["worker_id"],
                "customer_id": line["customer_id"],
                "inventory_id": line["inventory_id"],
                "product_name": line["product_name"],
                "delivered_quantity": line["delivered_quantity"],
                "bill": line["bill"],
                "is_collected": line["is_collected"],
            }],
            "cash_data": [{"worker_id": worker.id, "actual_amount": 40000}],
            "verified_by": "admin",
        })
        assert verification.status_code == 200
        assert verification.get_json()["data"]["processed_deliveries"] == 1

        period = {"customer_id": customer.id, "start_date": today.isoformat(), "end_date": today.isoformat()}
        preview = client.get("/api/bills/preview", query_string=period).get_json()["data"]
        assert preview["grand_total_paise"] == 40000

        generated = client.post("/api/bills/generate", json={**period, "created_by": "admin"})
        assert generated.status_code == 201
        bill = generated.get_json()["data"]["bill"]
        assert bill["total_amount_paise"] == 40000

        repeat = client.post("/api/bills/generate", json={**period, "created_by": "admin"})
        assert repeat.status_code == 409
        assert repeat.get_json()["message"] == "No unbilled deliveries found for the selected period"

        document = client.get(f"/api/bills/files/{bill['file_path']}")
        assert document.status_code == 200
        assert document.data[:2] == b"PK"

        assert client.get(f"/api/bills/{bill['id']}").get_json()["data"]["bill_number"] == bill["bill_number"]
        assert client.get("/api/bills/98765").status_code == 404

        bills = client.get(f"/api/bills/customer/{customer.id}").get_json()["data"]
        assert [b["bill_number"] for b in bills] == [bill["bill_number"]]

        paid = client.patch(f"/api/bills/{bill['id']}/mark-paid")
        assert paid.get_json()["data"]["status"] == "PAID"
        assert client.patch(f"/api/bills/{bill['id']}/mark-paid").status_code == 409


class TestRelationRoutes:
    def test_assign_and_end(self, client, db_session, customer, milk):
        body = {"customer_id": customer.id, "product_id": milk.id, "quantity": 2}

        assert client.post("/api/relations/customer-products", json=body).status_code == 201
        assert client.post("/api/relations/customer-products", json=body).status_code == 409
        assert client.patch("/api/relations/customer-products", json={**body, "quantity": 5}).status_code == 200
        assert client.delete("/api/relations/customer-products", json=body).status_code == 200
        assert client.delete("/api/relations/customer-products", json=body).status_code == 404

    def test_worker_customer_assignment(self, client, db_session, worker, customer):
        body = {"worker_id": worker.id, "customer_id": customer.id, "sequence_number": 1}

        assert client.post("/api/relations/worker-customers", json=body).status_code == 201
        assert client.post("/api/relations/worker-customers", json=body).status_code == 409

        mine = client.get(f"/api/relations/workers/{worker.id}/customers").get_json()["data"]
        assert [c["customer"]["full_name"] for c in mine] == ["Anita Sharma"]

        assert client.delete("/api/relations/worker-customers", json=body).status_code == 200
        assert client.delete("/api/relations/worker-customers", json=body).status_code == 404
        assert client.get(f"/api/relations/workers/{worker.id}/customers").get_json()["data"] == []

        relations = client.get("/api/relations/worker-customers").get_json()["data"]
        assert len(relations) == 1
        assert relations[0]["thru_date"] is not None


def test_health(client, db_session):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_worker_reads_own_cash_in_hand(client, db_session, worker):
    empty = client.get(f"/api/cash-in-hand/workers/{worker.id}")
    assert empty.status_code == 200
    assert empty.get_json()["data"] is None

    client.post("/api/cash-in-hand", json={"worker_id": worker.id, "amount": 40000})

    payload = client.get(f"/api/cash-in-hand/workers/{worker.id}").get_json()
    assert payload["message"] == "Cash in hand record fetched successfully"
    assert payload["data"]["reported_paise"] == 40000
    assert "actual_paise" not in payload["data"]
