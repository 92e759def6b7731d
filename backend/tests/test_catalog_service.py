# Overview: Pytest coverage for products, customers, suppliers, users and settings.

from decimal import Decimal

import pytest

from erp_master.models import ROLE_CASHIER
from erp_master.services import catalog_service
from erp_master.services.catalog_service import CatalogError
from erp_master.validation import ConflictError, NotFoundError, ValidationError

from conftest import CUSTOMER_ID, PRODUCT_ID


class TestProducts:
    def test_create_product_defaults(self, document):
        doc, product = catalog_service.create_product(document, {"name": "Soap", "sellPrice": "1.25"})

        assert product.category == "General"
        assert product.sell_price == Decimal("1.25")
        assert product.stock == 0
        assert doc.find_product(product.id) is not None
        assert doc.audit_logs[0].details == "Created product: Soap"

    def test_negative_price_rejected(self, document):
        with pytest.raises(ValidationError):
            catalog_service.create_product(document, {"name": "Soap", "costPrice": -1})

    def test_update_product_moves_no_money(self, document):
        doc, product = catalog_service.update_product(document, PRODUCT_ID, {"stock": 40, "costPrice": 3})

        assert product.stock == 40
        assert product.cost_price == Decimal("3")
        assert all(a.balance == 0 for a in doc.accounts)
        assert doc.audit_logs[0].action == "Edit Product"

    def test_update_rejects_read_only_field(self, document):
        with pytest.raises(ValidationError):
            catalog_service.update_product(document, PRODUCT_ID, {"id": "other"})

    def test_delete_product(self, document):
        doc, product = catalog_service.delete_product(document, PRODUCT_ID)

        assert doc.products == []
        assert doc.audit_logs[0].details == "Permanently removed: Widget"

    def test_delete_unknown_product(self, document):
        with pytest.raises(NotFoundError):
            catalog_service.delete_product(document, "missing")

    @pytest.mark.parametrize("term", ["widg", "WID-1", "1112"])
    def test_search_matches_name_sku_barcode(self, document, term):
        assert [p.id for p in catalog_service.search_products(document, term)] == [PRODUCT_ID]

    def test_search_without_match(self, document):
        assert catalog_service.search_products(document, "zzz") == []

    def test_import_empty_list_is_noop(self, document):
        doc, imported = catalog_service.import_products(document, [])

        assert doc is document
        assert imported == []


class TestCustomersAndSuppliers:
    def test_phone_is_customer_id(self, document):
        doc, customer = catalog_service.create_customer(document, {"name": "Hana", "phone": "0944"})

        assert customer.id == "0944"
        assert customer.debt_balance == 0
        assert doc.audit_logs[0].action == "Add Customer"

    def test_duplicate_phone_conflicts(self, document):
        with pytest.raises(ConflictError, match="already registered"):
            catalog_service.create_customer(document, {"name": "Other", "phone": CUSTOMER_ID})

    def test_delete_customer(self, document):
        doc, _ = catalog_service.delete_customer(document, CUSTOMER_ID)

        assert doc.customers == []
        assert doc.audit_logs[0].action == "Customer Deleted"

    def test_supplier_lifecycle(self, document):
        doc, supplier = catalog_service.create_supplier(document, {"name": "Addis Trading", "phone": "0111"})
        assert catalog_service.search_suppliers(doc, "addis") == [supplier]

        doc, _ = catalog_service.delete_supplier(doc, supplier.id)
        assert doc.suppliers == []

    def test_supplier_requires_phone(self, document):
        with pytest.raises(ValidationError):
            catalog_service.create_supplier(document, {"name": "No Phone"})


class TestUsers:
    def test_create_and_switch_user(self, document):
        doc, user = catalog_service.create_user(document, {"name": "Sara", "role": ROLE_CASHIER})
        doc, current = catalog_service.switch_user(doc, user.id)

        assert current.name == "Sara"
        assert doc.settings.current_user.role == ROLE_CASHIER
        assert doc.audit_logs[0].action == "Login Simulation"
        assert doc.audit_logs[0].user == "Sara"

    def test_later_audit_entries_carry_switched_user(self, document):
        doc, user = catalog_service.create_user(document, {"name": "Sara"})
        doc, _ = catalog_service.switch_user(doc, user.id)
        doc, _ = catalog_service.create_product(doc, {"name": "Soap"})

        assert doc.audit_logs[0].user == "Sara"

    def test_admin_cannot_be_deleted(self, document):
        with pytest.raises(CatalogError, match="Administrator"):
            catalog_service.delete_user(document, "1")

    def test_delete_cashier(self, document):
        doc, user = catalog_service.create_user(document, {"name": "Sara"})
        doc, _ = catalog_service.delete_user(doc, user.id)

        assert [u.id for u in doc.users] == ["1"]

    def test_unknown_role_rejected(self, document):
        with pytest.raises(ValidationError):
            catalog_service.create_user(document, {"name": "Sara", "role": "Owner"})


class TestSettings:
    def test_update_settings(self, document):
        doc, settings = catalog_service.update_settings(document, {
            "businessName": "Kebede Mini Market",
            "taxRate": 15,
            "autoSyncCloud": False,
        })

        assert settings["businessName"] == "Kebede Mini Market"
        assert settings["taxRate"] == 15
        assert doc.settings.sync_settings.auto_sync_cloud is False
        assert doc.audit_logs[0].action == "Settings Update"

    def test_exchange_rate_must_be_positive(self, document):
        with pytest.raises(ValidationError):
            catalog_service.update_settings(document, {"exchangeRate": 0})

    def test_unknown_currency_rejected(self, document):
        with pytest.raises(ValidationError):
            catalog_service.update_settings(document, {"defaultCurrency": "EUR"})
