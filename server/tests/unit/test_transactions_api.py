"""Integration tests for the payment transaction ledger."""

import json

import pytest
import pytest_asyncio

from conftest import TEST_WEBHOOK_SECRET, checkout_signature, sign
from adventure_api.models.transaction import TransactionLog, TransactionStatus
from adventure_api.services.transaction_service import generate_transaction_id, net_amount, set_status


@pytest_asyncio.fixture
async def ordered_booking(test_client, customer_headers, departure_booking_payload):
    """Reference and gateway order of a 16,500 booking awaiting payment."""
    response = await test_client.post("/api/bookings", json=departure_booking_payload, headers=customer_headers)
    assert response.status_code == 201
    reference = response.json()["bookingId"]

    order = await test_client.post(
        "/api/payment/create-order", json={"bookingId": reference}, headers=customer_headers
    )
    assert order.status_code == 200, order.text
    return reference, order.json()["orderId"]


@pytest_asyncio.fixture
async def paid_booking(test_client, customer_headers, ordered_booking):
    """Reference of a booking paid through the checkout callback."""
    reference, order_id = ordered_booking
    response = await test_client.post(
        "/api/payment/verify",
        json={
            "razorpay_order_id": order_id,
            "razorpay_payment_id": "pay_checkout_1",
            "razorpay_signature": checkout_signature(order_id, "pay_checkout_1"),
            "bookingId": reference,
        },
        headers=customer_headers,
    )
    assert response.status_code == 200
    return reference


async def _ledger(client, headers, **params) -> dict:
    response = await client.get("/api/admin/transactions", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _by_type(entries: list[dict]) -> dict[str, dict]:
    return {entry["type"]: entry for entry in entries}


def test_net_amount():
    assert net_amount(1000) == 1000
    assert net_amount(1000, tax=180, processing_fee=20, platform_fee=10, discount=50) == 840


def test_set_status_stamps_lifecycle_once():
    entry = TransactionLog(status=TransactionStatus.PENDING)

    set_status(entry, TransactionStatus.COMPLETED)
    completed_at = entry.completed_at
    assert entry.processed_at is not None
    assert completed_at is not None
    assert entry.failed_at is None

    set_status(entry, TransactionStatus.REFUNDED)
    assert entry.status == TransactionStatus.REFUNDED
    assert entry.completed_at == completed_at

    failed = TransactionLog(status=TransactionStatus.PENDING)
    set_status(failed, TransactionStatus.FAILED)
    assert failed.failed_at is not None
    assert failed.completed_at is None


def test_transaction_id_format():
    first, second = generate_transaction_id(), generate_transaction_id()
    assert first.startswith("TXN_")
    assert len(first.split("_")[-1]) == 5
    assert first != second


@pytest.mark.asyncio
async def test_create_order_opens_pending_payment(test_client, admin_headers, ordered_booking):
    """Test that a gateway order opens one PENDING payment entry."""
    reference, order_id = ordered_booking

    ledger = await _ledger(test_client, admin_headers)

    [entry] = ledger["data"]
    assert entry["type"] == "PAYMENT"
    assert entry["status"] == "PENDING"
    assert entry["bookingReference"] == reference
    assert entry["eventTitle"] == "Hampta Pass Trek"
    assert entry["userEmail"] == "asha@example.com"
    assert entry["gatewayTransactionId"] == order_id
    assert entry["amount"]["gross"] == 16500
    assert entry["amount"]["net"] == 16500
    assert entry["currency"] == "INR"
    assert entry["transactionId"].startswith("TXN_")
    assert ledger["summary"]["pendingTransactions"] == 1


@pytest.mark.asyncio
async def test_repeated_order_reuses_open_entry(test_client, customer_headers, admin_headers, ordered_booking):
    reference, _ = ordered_booking

    again = await test_client.post(
        "/api/payment/create-order", json={"bookingId": reference}, headers=customer_headers
    )
    assert again.status_code == 200

    ledger = await _ledger(test_client, admin_headers)
    assert ledger["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_verify_completes_payment(test_client, admin_headers, paid_booking):
    """Test that a verified checkout completes the payment entry."""
    ledger = await _ledger(test_client, admin_headers)

    [entry] = ledger["data"]
    assert entry["status"] == "COMPLETED"
    assert entry["gatewayTransactionId"] == "pay_checkout_1"
    assert entry["completedAt"] is not None
    assert ledger["summary"]["completedTransactions"] == 1
    assert ledger["summary"]["totalAmount"] == 16500


@pytest.mark.asyncio
async def test_webhook_failure_fails_payment(test_client, admin_headers, ordered_booking):
    """Test that a failed payment webhook fails the open entry with the gateway's reason."""
    _, order_id = ordered_booking
    body = json.dumps({
        "event": "payment.failed",
        "payload": {"payment": {"entity": {
            "id": "pay_hook_1", "order_id": order_id, "error_description": "Card declined by issuer",
        }}},
    }).encode("utf-8")
    response = await test_client.post(
        "/api/payment/webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": sign(TEST_WEBHOOK_SECRET, body)},
    )
    assert response.status_code == 200

    ledger = await _ledger(test_client, admin_headers)
    [entry] = ledger["data"]
    assert entry["status"] == "FAILED"
    assert entry["failedAt"] is not None
    assert entry["internalNotes"] == "Card declined by issuer"
    assert entry["gatewayResponse"]["id"] == "pay_hook_1"
    assert ledger["summary"]["failedTransactions"] == 1


@pytest.mark.asyncio
async def test_full_refund_recorded(test_client, admin_headers, paid_booking):
    """Test that an admin refund of the whole amount writes a REFUND and refunds the payment."""
    response = await test_client.post(
        f"/api/admin/bookings/{paid_booking}/refund",
        json={"reason": "Route closed by landslide"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    entries = _by_type((await _ledger(test_client, admin_headers))["data"])
    assert set(entries) == {"PAYMENT", "REFUND"}
    assert entries["PAYMENT"]["status"] == "REFUNDED"
    refund = entries["REFUND"]
    assert refund["status"] == "COMPLETED"
    assert refund["amount"]["gross"] == 16500
    assert refund["gatewayTransactionId"] == "rfnd_pay_checkout_1"
    assert refund["internalNotes"] == "Route closed by landslide"
    assert refund["bookingReference"] == paid_booking


@pytest.mark.asyncio
async def test_partial_refund_recorded(test_client, admin_headers, paid_booking):
    response = await test_client.post(
        f"/api/admin/bookings/{paid_booking}/refund", json={"amount": 5000}, headers=admin_headers
    )
    assert response.status_code == 200

    entries = _by_type((await _ledger(test_client, admin_headers))["data"])
    assert entries["PARTIAL_REFUND"]["amount"]["gross"] == 5000
    assert entries["PAYMENT"]["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_list_filters(test_client, admin_headers, customer, paid_booking):
    await test_client.post(
        f"/api/admin/bookings/{paid_booking}/refund", json={"amount": 5000}, headers=admin_headers
    )

    refunds = await _ledger(test_client, admin_headers, type="PARTIAL_REFUND")
    assert [entry["type"] for entry in refunds["data"]] == ["PARTIAL_REFUND"]
    assert refunds["summary"]["totalAmount"] == 5000

    by_reference = await _ledger(test_client, admin_headers, bookingId=paid_booking.lower())
    assert by_reference["pagination"]["total"] == 2

    by_user = await _ledger(test_client, admin_headers, userId=str(customer.id))
    assert by_user["pagination"]["total"] == 2

    large = await _ledger(test_client, admin_headers, minAmount=10000)
    assert [entry["type"] for entry in large["data"]] == ["PAYMENT"]

    searched = await _ledger(test_client, admin_headers, search="refund for")
    assert [entry["type"] for entry in searched["data"]] == ["PARTIAL_REFUND"]

    unreconciled = await _ledger(test_client, admin_headers, isReconciled="false")
    assert unreconciled["summary"]["reconciledTransactions"] == 0
    assert unreconciled["pagination"]["total"] == 2

    bad_user = await test_client.get(
        "/api/admin/transactions", params={"userId": "not-a-uuid"}, headers=admin_headers
    )
    assert bad_user.status_code == 400


@pytest.mark.asyncio
async def test_get_transaction(test_client, admin_headers, paid_booking):
    [entry] = (await _ledger(test_client, admin_headers))["data"]

    by_id = await test_client.get(f"/api/admin/transactions/{entry['id']}", headers=admin_headers)
    assert by_id.status_code == 200
    assert by_id.json()["transactionId"] == entry["transactionId"]

    by_txn = await test_client.get(
        f"/api/admin/transactions/{entry['transactionId'].lower()}", headers=admin_headers
    )
    assert by_txn.status_code == 200
    assert by_txn.json()["id"] == entry["id"]

    missing = await test_client.get("/api/admin/transactions/TXN_0_AAAAA", headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_reconcile_transaction(test_client, admin, admin_headers, paid_booking):
    """Test that reconciling stamps the admin and un-reconciling clears it."""
    [entry] = (await _ledger(test_client, admin_headers))["data"]

    response = await test_client.put(
        f"/api/admin/transactions/{entry['transactionId']}",
        json={"isReconciled": True, "internalNotes": "Matched settlement 42"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    reconciled = response.json()
    assert reconciled["isReconciled"] is True
    assert reconciled["reconciledBy"] == str(admin.id)
    assert reconciled["reconciledAt"] is not None
    assert reconciled["internalNotes"] == "Matched settlement 42"
    assert reconciled["status"] == "COMPLETED"

    summary = (await _ledger(test_client, admin_headers))["summary"]
    assert summary["reconciledTransactions"] == 1

    undone = await test_client.put(
        f"/api/admin/transactions/{entry['id']}", json={"isReconciled": False}, headers=admin_headers
    )
    assert undone.json()["reconciledBy"] is None
    assert undone.json()["reconciledAt"] is None


@pytest.mark.asyncio
async def test_update_transaction_status(test_client, admin_headers, ordered_booking):
    [entry] = (await _ledger(test_client, admin_headers))["data"]

    cancelled = await test_client.put(
        f"/api/admin/transactions/{entry['id']}",
        json={"status": "CANCELLED", "reason": "Customer abandoned checkout"},
        headers=admin_headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert cancelled.json()["failedAt"] is not None

    nulled = await test_client.put(
        f"/api/admin/transactions/{entry['id']}", json={"status": None}, headers=admin_headers
    )
    assert nulled.status_code == 400


@pytest.mark.asyncio
async def test_export_transactions(test_client, admin_headers, paid_booking):
    """Test the CSV export of the ledger."""
    response = await test_client.get("/api/admin/transactions/export", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="transactions_export_' in response.headers["content-disposition"]
    header, row = response.text.strip().splitlines()
    assert header.startswith("Transaction ID,Booking ID,User Name,User Email,Type,Status")
    assert f",{paid_booking},Asha Rao,asha@example.com,PAYMENT,COMPLETED,16500.0," in row
    assert row.split(",")[21] == "No"

    empty = await test_client.get(
        "/api/admin/transactions/export", params={"type": "ADJUSTMENT"}, headers=admin_headers
    )
    assert empty.status_code == 404


@pytest.mark.asyncio
async def test_ledger_is_admin_only(test_client, customer_headers, paid_booking):
    listing = await test_client.get("/api/admin/transactions", headers=customer_headers)
    assert listing.status_code == 403

    export = await test_client.get("/api/admin/transactions/export", headers=customer_headers)
    assert export.status_code == 403

    anonymous = await test_client.get("/api/admin/transactions")
    assert anonymous.status_code == 401
