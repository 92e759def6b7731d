# Overview: Pytest coverage for debt collection and the debt lifecycle.

from decimal import Decimal

import pytest

from erp_master.models import CreditSettlement, PAYMENT_DEBT, TX_DEBT_PAYMENT
from erp_master.services.debt_service import DebtPaymentError, list_debtors, receive_debt_payment
from erp_master.services.sales_service import delete_invoice, record_sale

from conftest import CUSTOMER_ID, PRODUCT_ID, balance, make_customer


@pytest.fixture
def indebted(document):
    document.find_customer(CUSTOMER_ID).debt_balance = Decimal("10")
    return document


class TestDebtLifecycle:
    def test_debt_sale_then_payment(self, document):
        """Sell 2 on Debt (no account), then pay 4 into cash: debt 6, cash +4."""
        assert document.find_customer(CUSTOMER_ID).debt_balance == 0

        doc, sale = record_sale(document, [(PRODUCT_ID, 2)], CreditSettlement(), customer_id=CUSTOMER_ID)
        customer = doc.find_customer(CUSTOMER_ID)
        assert sale.payment_method == PAYMENT_DEBT
        assert customer.debt_balance == Decimal("10")
        assert customer.loyalty_points == 10

        doc, payment = receive_debt_payment(doc, CUSTOMER_ID, 4, "acc-cash")

        assert doc.find_customer(CUSTOMER_ID).debt_balance == Decimal("6")
        assert balance(doc, "acc-cash") == Decimal("4")
        assert payment.type == TX_DEBT_PAYMENT
        assert payment.total == Decimal("4")
        assert doc.find_customer(CUSTOMER_ID).history == [sale.id, payment.id]

    def test_paying_full_balance_clears_debt(self, indebted):
        doc, _ = receive_debt_payment(indebted, CUSTOMER_ID, "10", "acc-bank", "Bank Transfer")

        assert doc.find_customer(CUSTOMER_ID).debt_balance == Decimal("0")
        assert balance(doc, "acc-bank") == Decimal("10")
        assert list_debtors(doc) == []

    def test_audit_entry(self, indebted):
        doc, _ = receive_debt_payment(indebted, CUSTOMER_ID, 4, "acc-cash")

        entry = doc.audit_logs[0]
        assert entry.action == "Debt Payment"
        assert entry.details == "Received USD 4.00 from Abebe Kebede via Cash. Deposited to Cash Account"

    def test_deleting_payment_puts_debt_back(self, indebted):
        doc, payment = receive_debt_payment(indebted, CUSTOMER_ID, 4, "acc-cash")

        doc, _ = delete_invoice(doc, payment.id)

        assert doc.find_customer(CUSTOMER_ID).debt_balance == Decimal("10")
        assert doc.find_customer(CUSTOMER_ID).history == []
        assert balance(doc, "acc-cash") == Decimal("0")


class TestDebtPaymentGuards:
    @pytest.mark.parametrize("amount", [0, -5, "", None, "abc"])
    def test_invalid_amount_rejected(self, indebted, amount):
        with pytest.raises(DebtPaymentError, match="valid amount"):
            receive_debt_payment(indebted, CUSTOMER_ID, amount, "acc-cash")

    def test_overpayment_rejected(self, indebted):
        with pytest.raises(DebtPaymentError, match="cannot exceed balance"):
            receive_debt_payment(indebted, CUSTOMER_ID, "10.01", "acc-cash")

    def test_missing_account_rejected(self, indebted):
        with pytest.raises(DebtPaymentError, match="select an account"):
            receive_debt_payment(indebted, CUSTOMER_ID, 4, None)

    def test_unknown_customer_rejected(self, indebted):
        with pytest.raises(DebtPaymentError):
            receive_debt_payment(indebted, "0000", 4, "acc-cash")

    def test_debt_is_not_a_payment_method(self, indebted):
        with pytest.raises(DebtPaymentError):
            receive_debt_payment(indebted, CUSTOMER_ID, 4, "acc-cash", PAYMENT_DEBT)

    def test_rejection_leaves_document_untouched(self, indebted):
        before = indebted.to_dict()
        with pytest.raises(DebtPaymentError):
            receive_debt_payment(indebted, CUSTOMER_ID, 50, "acc-cash")
        assert indebted.to_dict() == before


def test_debtors_sorted_by_balance(document):
    document.find_customer(CUSTOMER_ID).debt_balance = Decimal("3")
    document.customers.append(make_customer(id="0922", phone="0922", name="Chaltu", debt_balance=Decimal("8")))
    document.customers.append(make_customer(id="0933", phone="0933", name="Dawit"))

    assert [c.name for c in list_debtors(document)] == ["Chaltu", "Abebe Kebede"]
