# Overview: Pytest coverage for the posting rule table.

from decimal import Decimal

import pytest

from erp_master.models import Account, LOSS_DAMAGED_ACCOUNT_NAME, initial_document
from erp_master.services import posting_rules
from erp_master.services.posting_rules import PostingError, post

from conftest import balance


@pytest.fixture
def doc():
    return initial_document()


class TestTargetPostings:
    def test_sale_credits_target(self, doc):
        movements = post(doc, posting_rules.EVENT_SALE, Decimal("15"), target_account_id="acc-cash")

        assert balance(doc, "acc-cash") == Decimal("15")
        assert len(movements) == 1
        assert movements[0].delta == Decimal("15")
        assert movements[0].account_name == "Cash Account"

    def test_sale_reversal_is_floored_at_zero(self, doc):
        doc.find_account("acc-cash").balance = Decimal("4")

        post(doc, posting_rules.EVENT_SALE_REVERSAL, Decimal("10"), target_account_id="acc-cash")

        assert balance(doc, "acc-cash") == Decimal("0")

    def test_stock_in_may_overdraw(self, doc):
        """Purchases are not floored; the funds policy decides whether they run."""
        post(doc, posting_rules.EVENT_STOCK_IN, Decimal("30"), target_account_id="acc-bank")

        assert balance(doc, "acc-bank") == Decimal("-30")

    def test_expense_and_refund_cancel(self, doc):
        doc.find_account("acc-cash").balance = Decimal("50")

        post(doc, posting_rules.EVENT_EXPENSE, Decimal("12.5"), target_account_id="acc-cash")
        post(doc, posting_rules.EVENT_EXPENSE_REFUND, Decimal("12.5"), target_account_id="acc-cash")

        assert balance(doc, "acc-cash") == Decimal("50")

    def test_missing_target_id_raises(self, doc):
        with pytest.raises(PostingError):
            post(doc, posting_rules.EVENT_SALE, Decimal("1"))

    def test_deleted_target_account_is_skipped(self, doc):
        movements = post(doc, posting_rules.EVENT_SALE, Decimal("5"), target_account_id="acc-gone")

        assert movements == []


class TestInventoryLossPostings:
    def test_stock_loss_moves_value_from_inventory_to_loss(self, doc):
        doc.find_account("acc-inv").balance = Decimal("100")

        movements = post(doc, posting_rules.EVENT_STOCK_LOSS, Decimal("6"), loss_account=LOSS_DAMAGED_ACCOUNT_NAME)

        assert balance(doc, "acc-inv") == Decimal("94")
        assert balance(doc, "acc-4") == Decimal("6")
        assert [m.account_id for m in movements] == ["acc-inv", "acc-4"]

    def test_stock_loss_floors_inventory_but_credits_full_loss(self, doc):
        post(doc, posting_rules.EVENT_STOCK_LOSS, Decimal("6"), loss_account=LOSS_DAMAGED_ACCOUNT_NAME)

        assert balance(doc, "acc-inv") == Decimal("0")
        assert balance(doc, "acc-4") == Decimal("6")

    def test_reversal_floors_loss_account(self, doc):
        doc.find_account("acc-4").balance = Decimal("2")

        post(doc, posting_rules.EVENT_STOCK_LOSS_REVERSAL, Decimal("6"), loss_account=LOSS_DAMAGED_ACCOUNT_NAME)

        assert balance(doc, "acc-inv") == Decimal("6")
        assert balance(doc, "acc-4") == Decimal("0")

    def test_every_account_with_the_name_moves(self, doc):
        """Name selectors hit duplicates too, the way name-matched updates always have."""
        doc.accounts.append(Account(id="acc-dup", name=LOSS_DAMAGED_ACCOUNT_NAME, type="Liability", balance=Decimal("0")))

        post(doc, posting_rules.EVENT_STOCK_LOSS, Decimal("3"), loss_account=LOSS_DAMAGED_ACCOUNT_NAME)

        assert balance(doc, "acc-4") == Decimal("3")
        assert balance(doc, "acc-dup") == Decimal("3")


class TestPostingGuards:
    def test_zero_amount_posts_nothing(self, doc):
        assert post(doc, posting_rules.EVENT_SALE, Decimal("0"), target_account_id="acc-cash") == []

    def test_unknown_event_raises(self, doc):
        with pytest.raises(PostingError):
            post(doc, "sale.refunded_twice", Decimal("1"), target_account_id="acc-cash")
