# Overview: Pytest coverage for the Flask API: status codes, payload shapes and error mapping.

import io

import pytest

from erp_master import create_app
from erp_master.models import FullSettlement
from erp_master.routes.sales import checked_sale
from erp_master.services.sales_service import SaleError
from erp_master.time_utils import DAY_MS, HOUR_MS

from conftest import CUSTOMER_ID, PRODUCT_ID


def checkout(client, quantity=3, **body):
    payload = {
        "items": [{"productId": PRODUCT_ID, "quantity": quantity}],
        "paymentMethod": "Cash",
        "accountId": "acc-cash",
    }
    payload.update(body)
    return client.post("/api/sales", json=payload)


def account_balance(client, account_id):
    accounts = client.get("/api/accounts").get_json()["accounts"]
    return next(a["balance"] for a in accounts if a["id"] == account_id)


@pytest.fixture
def api(seeded_store, client):
    return client


class TestHealth:
    def test_health_reports_database_and_mirror(self, api):
        response = api.get("/api/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["documents"] == 1
        assert body["checks"]["mirror"]["backend"] == "none"


class TestCheckout:
    def test_cash_sale(self, api):
        response = checkout(api)

        assert response.status_code == 201
        body = response.get_json()
        assert body["invoiceNumber"] == f"INV-{body['transaction']['id'][-5:].upper()}"
        assert body["transaction"]["total"] == 15
        assert account_balance(api, "acc-cash") == 15

        product = api.get(f"/api/products/{PRODUCT_ID}").get_json()["product"]
        assert product["stock"] == 7

    def test_register_refuses_to_oversell(self, api):
        response = checkout(api, quantity=11)

        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == "Insufficient stock"
        assert body["details"]["items"] == [{"productId": PRODUCT_ID, "requested": 11, "available": 10}]

    def test_stock_check_reads_the_locked_document(self, api, seeded_store):
        cash = FullSettlement(method="Cash", account_id="acc-cash")
        seeded_store.apply(checked_sale, [(PRODUCT_ID, 6)], cash)
        before = seeded_store.snapshot()

        with pytest.raises(SaleError) as excinfo:
            seeded_store.apply(checked_sale, [(PRODUCT_ID, 6)], cash)

        assert excinfo.value.details == {"items": [{"productId": PRODUCT_ID, "requested": 6, "available": 4}]}
        assert seeded_store.snapshot() is before
        assert checkout(api, quantity=5).status_code == 400
        assert checkout(api, quantity=4).status_code == 201

    def test_non_finite_split_amount_rejected(self, api, seeded_store):
        version = seeded_store.snapshot().settings.sync_settings.data_version
        body = (
            '{"items": [{"productId": "' + PRODUCT_ID + '", "quantity": 1}], "paymentMethod": "Partial Payment", '
            '"accountId": "acc-cash", "customerId": "' + CUSTOMER_ID + '", "paymentDetails": {"cash": NaN}}'
        )

        response = api.post("/api/sales", data=body, content_type="application/json")

        assert response.status_code == 400
        assert "finite" in response.get_json()["error"]
        assert seeded_store.snapshot().settings.sync_settings.data_version == version
        assert checkout(api).status_code == 201

    def test_missing_deposit_account(self, api):
        response = checkout(api, accountId="")

        assert response.status_code == 400
        assert response.get_json()["error"] == "Please select a deposit account for this transaction."

    def test_unknown_payment_method(self, api):
        response = checkout(api, paymentMethod="Barter")

        assert response.status_code == 400

    def test_empty_cart_commits_nothing(self, api, seeded_store):
        version = seeded_store.snapshot().settings.sync_settings.data_version

        response = checkout(api, items=[])

        assert response.status_code == 200
        assert response.get_json()["transaction"] is None
        assert seeded_store.snapshot().settings.sync_settings.data_version == version

    def test_delete_sale_restores_stock_and_cash(self, api):
        sale = checkout(api).get_json()["transaction"]

        response = api.delete(f"/api/sales/{sale['id']}")

        assert response.status_code == 200
        assert account_balance(api, "acc-cash") == 0
        assert api.get(f"/api/products/{PRODUCT_ID}").get_json()["product"]["stock"] == 10

    def test_delete_unknown_sale(self, api):
        assert api.delete("/api/sales/nope").status_code == 404

    def test_list_sales_filters_by_customer_name(self, api):
        checkout(api)
        checkout(api, quantity=1, paymentMethod="Debt", accountId=None, customerId=CUSTOMER_ID)

        response = api.get("/api/sales?q=abebe")

        transactions = response.get_json()["transactions"]
        assert [t["paymentMethod"] for t in transactions] == ["Debt"]


class TestCustomers:
    def test_debt_payment_endpoint(self, api):
        checkout(api, quantity=2, paymentMethod="Debt", accountId=None, customerId=CUSTOMER_ID)

        response = api.post(
            f"/api/customers/{CUSTOMER_ID}/payments",
            json={"amount": 4, "accountId": "acc-cash", "paymentMethod": "Cash"},
        )

        assert response.status_code == 201
        body = response.get_json()
        assert body["transaction"]["type"] == "DEBT_PAYMENT"
        assert body["customer"]["debtBalance"] == 6
        assert account_balance(api, "acc-cash") == 4

    def test_non_finite_payment_rejected(self, api):
        checkout(api, quantity=2, paymentMethod="Debt", accountId=None, customerId=CUSTOMER_ID)

        response = api.post(
            f"/api/customers/{CUSTOMER_ID}/payments",
            data='{"amount": NaN, "accountId": "acc-cash"}',
            content_type="application/json",
        )

        assert response.status_code == 400
        customer = api.get(f"/api/customers/{CUSTOMER_ID}").get_json()["customer"]
        assert customer["debtBalance"] == 10

    def test_overpayment_rejected(self, api):
        response = api.post(f"/api/customers/{CUSTOMER_ID}/payments", json={"amount": 4, "accountId": "acc-cash"})

        assert response.status_code == 400

    def test_duplicate_phone_conflicts(self, api):
        response = api.post("/api/customers", json={"name": "Someone Else", "phone": CUSTOMER_ID})

        assert response.status_code == 409

    def test_debtors_list(self, api):
        checkout(api, quantity=1, paymentMethod="Debt", accountId=None, customerId=CUSTOMER_ID)

        debtors = api.get("/api/customers/debtors").get_json()["debtors"]

        assert [d["id"] for d in debtors] == [CUSTOMER_ID]


class TestProducts:
    def test_unknown_product(self, api):
        assert api.get("/api/products/nope").status_code == 404

    def test_create_and_search(self, api):
        response = api.post("/api/products", json={"name": "Blue Tape", "sku": "TAPE-9", "sellPrice": 3})

        assert response.status_code == 201
        found = api.get("/api/products?q=tape-9").get_json()["products"]
        assert [p["name"] for p in found] == ["Blue Tape"]

    def test_export_csv_is_audited(self, api):
        response = api.get("/api/products/export.csv")

        assert response.status_code == 200
        assert response.data.startswith(b"\xef\xbb\xbf")
        assert "attachment; filename=inventory_master_" in response.headers["Content-Disposition"]

        logs = api.get("/api/audit-logs?limit=1").get_json()["audit_logs"]
        assert logs[0]["action"] == "Export Products"

    def test_import_upload(self, api):
        data = {"file": (io.BytesIO(b"Name,SKU\nSoap,S1\nRice,R1\n"), "items.csv")}

        response = api.post("/api/products/import", data=data, content_type="multipart/form-data")

        assert response.status_code == 201
        assert response.get_json()["imported"] == 2
        assert len(api.get("/api/products").get_json()["products"]) == 3

    def test_import_requires_file(self, api):
        assert api.post("/api/products/import", data={}).status_code == 400


class TestInventory:
    def test_stock_in_paid_from_cash(self, api):
        checkout(api)

        response = api.post("/api/inventory/stock-in", json={
            "productId": PRODUCT_ID, "quantity": 5, "unitCost": 2, "accountId": "acc-cash",
        })

        assert response.status_code == 201
        body = response.get_json()
        assert body["totalCost"] == 10
        assert body["insufficientFunds"] is False
        assert account_balance(api, "acc-cash") == 5

    def test_stock_in_blocked_without_funds(self, api):
        response = api.post("/api/inventory/stock-in", json={
            "productId": PRODUCT_ID, "quantity": 5, "unitCost": 2, "accountId": "acc-bank",
        })

        assert response.status_code == 400
        assert "Insufficient funds" in response.get_json()["error"]

    def test_loss_and_reversal(self, api):
        response = api.post("/api/inventory/adjustments", json={
            "productId": PRODUCT_ID, "quantity": 1, "type": "DAMAGE", "reason": "Dropped",
        })
        assert response.status_code == 201
        adjustment = response.get_json()["adjustment"]

        listed = api.get("/api/inventory/adjustments?type=DAMAGE").get_json()["adjustments"]
        assert [a["id"] for a in listed] == [adjustment["id"]]

        assert api.delete(f"/api/inventory/adjustments/{adjustment['id']}").status_code == 200
        assert api.get(f"/api/products/{PRODUCT_ID}").get_json()["product"]["stock"] == 10
        assert api.get("/api/inventory/adjustments").get_json()["adjustments"] == []


class TestInventoryWarnPolicy:
    @pytest.fixture
    def app_config(self, app_config):
        app_config["PURCHASE_FUNDS_POLICY"] = "warn"
        return app_config

    def test_non_finite_unit_cost_leaves_register_usable(self, api):
        response = api.post(
            "/api/inventory/stock-in",
            data='{"productId": "' + PRODUCT_ID + '", "quantity": 5, "unitCost": Infinity, "accountId": "acc-bank"}',
            content_type="application/json",
        )

        assert response.status_code == 400
        assert account_balance(api, "acc-bank") == 0
        assert checkout(api).status_code == 201
        assert api.get(f"/api/products/{PRODUCT_ID}").get_json()["product"]["stock"] == 7

    def test_warn_policy_records_unfunded_purchase(self, api):
        response = api.post("/api/inventory/stock-in", json={
            "productId": PRODUCT_ID, "quantity": 5, "unitCost": 2, "accountId": "acc-bank",
        })

        assert response.status_code == 201
        assert response.get_json()["insufficientFunds"] is True


class TestFinance:
    def test_expense_debits_funding_account(self, api):
        checkout(api)

        response = api.post("/api/expenses", json={
            "description": "Tea", "amount": 4, "accountId": "acc-cash", "category": "Office",
        })

        assert response.status_code == 201
        assert response.get_json()["insufficientFunds"] is False
        assert account_balance(api, "acc-cash") == 11

    def test_expense_requires_fields(self, api):
        assert api.post("/api/expenses", json={"description": "Tea"}).status_code == 400

    def test_deleting_funded_account_warns(self, api):
        checkout(api)

        response = api.delete("/api/accounts/acc-cash")

        assert response.status_code == 200
        body = response.get_json()
        assert body["imbalanceWarning"] is True
        assert body["warning"].startswith("Cash Account had a balance of 15")

    def test_statements(self, api):
        checkout(api)

        body = api.get("/api/accounting/statements").get_json()

        assert body["incomeStatement"]["revenue"] == 15
        assert body["incomeStatement"]["cogs"] == 6
        assert body["balanceSheet"]["liquidAssets"] == 15
        assert set(body) == {"incomeStatement", "balanceSheet", "isBalanced", "discrepancy"}


class TestReports:
    def test_z_report(self, api):
        checkout(api)

        body = api.get("/api/reports/z-report").get_json()

        assert body["count"] == 1
        assert body["totalSales"] == 15
        assert body["cash"] == 15

    def test_daily_summary(self, api):
        checkout(api)

        body = api.get("/api/reports/summary?period=daily").get_json()

        assert body["period"] == "daily"
        assert body["sales"] == 15
        assert body["grossProfit"] == 9

    def test_daily_summary_uses_utc_day_by_default(self, api):
        body = api.get("/api/reports/summary?period=daily").get_json()

        assert body["start"] % DAY_MS == 0

    def test_unknown_period(self, api):
        assert api.get("/api/reports/summary?period=fortnightly").status_code == 400

    def test_dashboard(self, api):
        checkout(api)

        body = api.get("/api/reports/dashboard").get_json()

        assert body["totalSales"] == 15
        assert body["totalProfit"] == 9
        assert len(body["series"]) == 7


class TestReportsAtLocalOffset:
    @pytest.fixture
    def app_config(self, app_config):
        app_config["BUSINESS_UTC_OFFSET_MINUTES"] = 180
        return app_config

    def test_z_report_day_starts_at_local_midnight(self, api):
        checkout(api)

        body = api.get("/api/reports/z-report").get_json()

        assert body["dayStart"] % DAY_MS == DAY_MS - 3 * HOUR_MS
        assert body["count"] == 1

    def test_daily_summary_day_starts_at_local_midnight(self, api):
        body = api.get("/api/reports/summary?period=daily").get_json()

        assert body["start"] % DAY_MS == DAY_MS - 3 * HOUR_MS


class TestConfig:
    def test_out_of_range_utc_offset_rejected(self, app_config):
        app_config["BUSINESS_UTC_OFFSET_MINUTES"] = 15 * 60

        with pytest.raises(ValueError):
            create_app(app_config)


class TestSystem:
    def test_backup_round_trip(self, api, seeded_store):
        backup = api.get("/api/backup")
        assert backup.status_code == 200
        document = backup.get_json()

        document["products"][0]["name"] = "Restored Widget"
        response = api.post("/api/backup", json=document)

        assert response.status_code == 200
        assert seeded_store.snapshot().products[0].name == "Restored Widget"
        logs = api.get("/api/audit-logs").get_json()["audit_logs"]
        assert logs[0]["action"] == "Data Restore"

    def test_backup_upload_rejects_garbage(self, api):
        data = {"file": (io.BytesIO(b"not json"), "backup.json")}

        response = api.post("/api/backup", data=data, content_type="multipart/form-data")

        assert response.status_code == 400

    def test_backup_with_malformed_records_rejected(self, api, seeded_store):
        response = api.post("/api/backup", json={"products": [1], "transactions": []})

        assert response.status_code == 400
        assert response.get_json()["error"] == "Backup does not look like an ERP document"
        assert seeded_store.snapshot().products[0].name == "Widget"

    def test_backup_upload_rejects_binary(self, api):
        data = {"file": (io.BytesIO(b"\xff\xfe\x00garbage"), "backup.json")}

        response = api.post("/api/backup", data=data, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json()["error"] == "Backup is not valid UTF-8 text"

    def test_settings_patch(self, api):
        response = api.patch("/api/settings", json={"businessName": "Kebede Shop", "taxRate": 15})

        assert response.status_code == 200
        settings = response.get_json()["settings"]
        assert settings["businessName"] == "Kebede Shop"
        assert settings["taxRate"] == 15

    def test_audit_log_limit(self, api):
        checkout(api)
        checkout(api, quantity=1)

        body = api.get("/api/audit-logs?limit=1").get_json()

        assert len(body["audit_logs"]) == 1
        assert body["total"] >= 2


class TestUsers:
    def test_switch_user_and_hide_password(self, api):
        created = api.post("/api/users", json={"name": "Sara", "role": "Cashier", "password": "1234"})
        assert created.status_code == 201
        user = created.get_json()["user"]
        assert "password" not in user

        response = api.post(f"/api/users/{user['id']}/switch")

        assert response.status_code == 200
        assert response.get_json()["current_user"]["name"] == "Sara"
        logs = api.get("/api/audit-logs?limit=1").get_json()["audit_logs"]
        assert logs[0]["user"] == "Sara"

    def test_admin_cannot_be_deleted(self, api):
        assert api.delete("/api/users/1").status_code == 400


class TestSync:
    def test_status_without_mirror(self, api):
        body = api.get("/api/sync/status").get_json()

        assert body["backend"] == "none"
        assert body["state"] == "idle"
        assert body["pending"] is False

    def test_push_without_mirror(self, api):
        response = api.post("/api/sync/push")

        assert response.status_code == 400
        assert response.get_json()["kind"] == "MirrorNotConfigured"
