# Overview: Pytest coverage for customer and workshop payments and order profitability.

from decimal import Decimal

import pytest

from orderdesk.errors import InvalidAmountError, NotFoundError, ValidationError
from orderdesk.extensions import db
from orderdesk.models import CustomerPayment, Transaction, WorkshopPayment
from orderdesk.services import order_service, payment_service, transaction_service


@pytest.fixture
def order_a(tenant_a, payload):
    """Reference order for tenant A: total 190.00."""
    return order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)


class TestCustomerPayments:

    def test_partial_then_remaining(self, tenant_a, order_a):
        payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=50, status="Partial")

        summary = payment_service.payment_summary(tenant_a.id, order_a.serial)
        assert summary == {
            "order_serial": order_a.serial,
            "total": "190.00",
            "paid": "50.00",
            "remaining": "140.00",
            "payment_state": "partial",
        }

        payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=140, status="Paid")
        summary = payment_service.payment_summary(tenant_a.id, order_a.serial)
        assert summary["remaining"] == "0.00"
        assert summary["payment_state"] == "paid"

    def test_overpayment_rejected(self, tenant_a, order_a):
        payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=150, status="Paid")

        with pytest.raises(InvalidAmountError) as exc_info:
            payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=50, status="Paid")

        assert exc_info.value.message == "Payment 50.00 exceeds remaining balance 40.00"
        assert exc_info.value.details == {"remaining": "40.00"}
        assert db.session.query(CustomerPayment).count() == 1
        assert db.session.query(Transaction).count() == 1

    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive_amount(self, tenant_a, order_a, amount):
        with pytest.raises(InvalidAmountError, match="greater than zero"):
            payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=amount, status="Paid")
        assert db.session.query(CustomerPayment).count() == 0

    def test_unknown_status(self, tenant_a, order_a):
        with pytest.raises(ValidationError):
            payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=10, status="Refunded")

    def test_unknown_order(self, tenant_a):
        with pytest.raises(NotFoundError):
            payment_service.record_customer_payment(tenant_a.id, "INV-0000-0001", amount=10, status="Paid")

    def test_unpaid_is_recorded_but_not_counted(self, tenant_a, order_a):
        payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=100, status="Unpaid")

        summary = payment_service.payment_summary(tenant_a.id, order_a.serial)
        assert summary["paid"] == "0.00"
        assert summary["payment_state"] == "unpaid"
        assert db.session.query(CustomerPayment).count() == 1
        assert db.session.query(Transaction).count() == 0

    def test_counted_payment_posts_income(self, tenant_a, order_a):
        payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=75, status="Paid")

        tx = db.session.query(Transaction).one()
        assert tx.transaction_type == "income"
        assert tx.amount == Decimal("75.00")
        assert tx.order_serial == order_a.serial
        assert tx.description == f"Customer payment for {order_a.serial}"
        assert transaction_service.tenant_balance(tenant_a.id) == Decimal("75.00")

    def test_defaults_from_order(self, tenant_a, order_a):
        payment = payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=10, status="Paid")
        assert payment.customer_name == "Mona Adel"
        assert payment.payment_method == "cash"


class TestWorkshopPayments:

    def test_due_then_settle(self, tenant_a, order_a):
        row = payment_service.record_workshop_payment(
            tenant_a.id, order_a.serial,
            workshop_name="Cairo Prints", product_name="Frame", cost_amount=100,
        )
        assert row.payment_status == "Due"
        assert row.actual_payment_date is None

        settled = payment_service.settle_workshop_payment(tenant_a.id, row.id)
        assert settled.payment_status == "Paid"
        assert settled.actual_payment_date is not None

    def test_settling_twice_rejected(self, tenant_a, order_a):
        row = payment_service.record_workshop_payment(
            tenant_a.id, order_a.serial,
            workshop_name="Cairo Prints", product_name="Frame", cost_amount=100,
        )
        payment_service.settle_workshop_payment(tenant_a.id, row.id)

        with pytest.raises(ValidationError, match="Only Due"):
            payment_service.settle_workshop_payment(tenant_a.id, row.id)

    def test_paid_defaults_actual_date(self, tenant_a, order_a):
        row = payment_service.record_workshop_payment(
            tenant_a.id, order_a.serial,
            workshop_name="Cairo Prints", product_name="Frame", cost_amount=100, status="Paid",
        )
        assert row.actual_payment_date is not None

    @pytest.mark.parametrize("field,value,error", [
        ("workshop_name", "", ValidationError),
        ("product_name", " ", ValidationError),
        ("cost_amount", 0, InvalidAmountError),
        ("status", "Overdue", ValidationError),
    ])
    def test_invalid_input(self, tenant_a, order_a, field, value, error):
        kwargs = {"workshop_name": "Cairo Prints", "product_name": "Frame", "cost_amount": 100}
        kwargs[field] = value
        with pytest.raises(error):
            payment_service.record_workshop_payment(tenant_a.id, order_a.serial, **kwargs)
        assert db.session.query(WorkshopPayment).count() == 0

    def test_settle_other_tenant_row(self, tenant_a, tenant_b, order_a):
        row = payment_service.record_workshop_payment(
            tenant_a.id, order_a.serial,
            workshop_name="Cairo Prints", product_name="Frame", cost_amount=100,
        )
        with pytest.raises(NotFoundError):
            payment_service.settle_workshop_payment(tenant_b.id, row.id)


class TestPaymentRoutes:

    def test_add_customer_payment(self, client, headers_a, order_a):
        response = client.post(
            f"/api/orders/{order_a.serial}/customer-payments",
            json={"amount": 90, "status": "Partial", "reference_number": "RCPT-1"},
            headers=headers_a,
        )
        assert response.status_code == 201
        data = response.get_json()
        assert data["payment"]["amount"] == "90.00"
        assert data["summary"]["remaining"] == "100.00"

    def test_overpayment_is_400(self, client, headers_a, order_a):
        response = client.post(
            f"/api/orders/{order_a.serial}/customer-payments",
            json={"amount": 500},
            headers=headers_a,
        )
        assert response.status_code == 400
        assert response.get_json()["details"]["remaining"] == "190.00"

    def test_payments_listing(self, client, headers_a, order_a):
        client.post(f"/api/orders/{order_a.serial}/customer-payments", json={"amount": 20}, headers=headers_a)
        client.post(
            f"/api/orders/{order_a.serial}/workshop-payments",
            json={"workshop_name": "Cairo Prints", "product_name": "Frame", "cost_amount": 60},
            headers=headers_a,
        )

        response = client.get(f"/api/orders/{order_a.serial}/payments", headers=headers_a)
        assert response.status_code == 200
        data = response.get_json()
        assert len(data["customer_payments"]) == 1
        assert len(data["workshop_payments"]) == 1
        assert data["summary"]["paid"] == "20.00"

    def test_settle_route(self, client, headers_a, order_a):
        response = client.post(
            f"/api/orders/{order_a.serial}/workshop-payments",
            json={"workshop_name": "Cairo Prints", "product_name": "Frame", "cost_amount": 60},
            headers=headers_a,
        )
        payment_id = response.get_json()["workshop_payment"]["id"]

        response = client.post(f"/api/workshop-payments/{payment_id}/settle", json={}, headers=headers_a)
        assert response.status_code == 200
        assert response.get_json()["workshop_payment"]["payment_status"] == "Paid"

    def test_profitability_report(self, client, headers_a, tenant_a, order_a):
        payment_service.record_customer_payment(tenant_a.id, order_a.serial, amount=190, status="Paid")
        row = payment_service.record_workshop_payment(
            tenant_a.id, order_a.serial,
            workshop_name="Cairo Prints", product_name="Frame", cost_amount=100,
        )
        payment_service.settle_workshop_payment(tenant_a.id, row.id)

        response = client.get("/api/reports/profitability", headers=headers_a)
        assert response.status_code == 200
        orders = response.get_json()["orders"]
        assert len(orders) == 1
        assert orders[0]["total_customer_paid"] == "190.00"
        assert orders[0]["net_profit_loss"] == "90.00"
        assert orders[0]["cash_flow_status"] == "Positive"
        assert orders[0]["financial_status"] == "Profitable"
