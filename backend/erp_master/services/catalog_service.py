# Overview: Service-layer operations for products, customers, suppliers, users and settings.

"""
Catalog Service

Master-data maintenance. None of these handlers move money; every write
still goes through the copy-on-write handler shape and appends an audit entry.

- Customers use their phone number as the id (natural key); a second customer
  with the same phone is a conflict.
- Administrator profiles cannot be deleted.
- Switching the current user changes the name stamped on later audit entries.
"""

from __future__ import annotations

from decimal import Decimal

from ..models import (
    AppData,
    Product,
    Customer,
    Supplier,
    UserProfile,
    CurrentUser,
    DEFAULT_CATEGORY,
    ROLE_ADMIN,
    ROLE_CASHIER,
    VALID_ROLES,
    VALID_CURRENCIES,
)
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
    NotFoundError,
    FIELD_TEXT,
    FIELD_MONEY,
    FIELD_INT,
    FIELD_BOOL,
    ZERO,
)
from .audit_service import append_audit_log
from .identifier_service import generate_id


class CatalogError(Exception):
    """Raised for catalog maintenance errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# =============================================================================
# VALIDATION POLICIES
# =============================================================================

PRODUCT_POLICY = ModelValidationPolicy(
    field_types={
        "name": FIELD_TEXT,
        "sku": FIELD_TEXT,
        "barcode": FIELD_TEXT,
        "costPrice": FIELD_MONEY,
        "sellPrice": FIELD_MONEY,
        "stock": FIELD_INT,
        "category": FIELD_TEXT,
        "image": FIELD_TEXT,
    },
    writable_fields={"name", "sku", "barcode", "costPrice", "sellPrice", "stock", "category", "image"},
    required_on_create={"name"},
)

CUSTOMER_POLICY = ModelValidationPolicy(
    field_types={"name": FIELD_TEXT, "phone": FIELD_TEXT, "photo": FIELD_TEXT},
    writable_fields={"name", "phone", "photo"},
    required_on_create={"name", "phone"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    field_types={"name": FIELD_TEXT, "contact": FIELD_TEXT, "phone": FIELD_TEXT},
    writable_fields={"name", "contact", "phone"},
    required_on_create={"name", "phone"},
)

USER_POLICY = ModelValidationPolicy(
    field_types={"name": FIELD_TEXT, "role": FIELD_TEXT, "password": FIELD_TEXT, "avatar": FIELD_TEXT},
    writable_fields={"name", "role", "password", "avatar"},
    required_on_create={"name"},
    choices={"role": VALID_ROLES},
)

SETTINGS_POLICY = ModelValidationPolicy(
    field_types={
        "businessName": FIELD_TEXT,
        "businessLogo": FIELD_TEXT,
        "exchangeRate": FIELD_MONEY,
        "taxRate": FIELD_MONEY,
        "defaultCurrency": FIELD_TEXT,
        "authUsername": FIELD_TEXT,
        "authPassword": FIELD_TEXT,
        "supabaseUrl": FIELD_TEXT,
        "supabaseKey": FIELD_TEXT,
        "githubToken": FIELD_TEXT,
        "autoSyncCloud": FIELD_BOOL,
    },
    writable_fields={
        "businessName",
        "businessLogo",
        "exchangeRate",
        "taxRate",
        "defaultCurrency",
        "authUsername",
        "authPassword",
        "supabaseUrl",
        "supabaseKey",
        "githubToken",
        "autoSyncCloud",
    },
    choices={"defaultCurrency": VALID_CURRENCIES},
)

_PRODUCT_FIELDS = {
    "name": "name",
    "sku": "sku",
    "barcode": "barcode",
    "costPrice": "cost_price",
    "sellPrice": "sell_price",
    "stock": "stock",
    "category": "category",
    "image": "image",
}

_SETTINGS_FIELDS = {
    "businessName": "business_name",
    "businessLogo": "business_logo",
    "exchangeRate": "exchange_rate",
    "taxRate": "tax_rate",
    "defaultCurrency": "default_currency",
    "authUsername": "auth_username",
    "authPassword": "auth_password",
    "supabaseUrl": "supabase_url",
    "supabaseKey": "supabase_key",
    "githubToken": "github_token",
}


def _check_prices(data: dict) -> None:
    for key in ("costPrice", "sellPrice"):
        if data.get(key) is not None and data[key] < ZERO:
            raise ValidationError(f"{key} cannot be negative")


# =============================================================================
# PRODUCTS
# =============================================================================

def search_products(document: AppData, term: str | None = None) -> list[Product]:
    if not term:
        return list(document.products)
    return [p for p in document.products if p.matches(term)]


def create_product(document: AppData, payload: dict) -> tuple[AppData, Product]:
    data = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
    _check_prices(data)

    draft = document.clone()
    product = Product(
        id=generate_id(),
        name=data["name"],
        sku=data.get("sku") or "",
        barcode=data.get("barcode") or "",
        cost_price=data.get("costPrice") or ZERO,
        sell_price=data.get("sellPrice") or ZERO,
        stock=data.get("stock") or 0,
        category=data.get("category") or DEFAULT_CATEGORY,
        image=data.get("image") or None,
    )
    draft.products.append(product)
    append_audit_log(draft, "Add Product", f"Created product: {product.name}")
    return draft, product


def update_product(document: AppData, product_id: str, payload: dict) -> tuple[AppData, Product]:
    """
    Edit product master data.

    Direct stock and cost edits are catalog corrections; they move no money.
    """
    if document.find_product(product_id) is None:
        raise NotFoundError(f"Product {product_id} not found")
    data = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
    _check_prices(data)
    if "name" in data and not data["name"]:
        raise ValidationError("name cannot be empty")

    draft = document.clone()
    product = draft.find_product(product_id)
    for key, value in data.items():
        if value is None:
            continue
        setattr(product, _PRODUCT_FIELDS[key], value)
    if not product.category:
        product.category = DEFAULT_CATEGORY
    append_audit_log(draft, "Edit Product", f"Updated product: {product.name}")
    return draft, product


def delete_product(document: AppData, product_id: str) -> tuple[AppData, Product]:
    product = document.find_product(product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")

    draft = document.clone()
    draft.products = [p for p in draft.products if p.id != product_id]
    append_audit_log(draft, "Delete Product", f"Permanently removed: {product.name}")
    return draft, product


def import_products(document: AppData, products: list[Product]) -> tuple[AppData, list[Product]]:
    """Append already-parsed products (fresh ids assigned by the parser)."""
    if not products:
        return document, []

    draft = document.clone()
    draft.products.extend(products)
    append_audit_log(draft, "Import Products", f"Imported {len(products)} products from Excel/CSV")
    return draft, products


# =============================================================================
# CUSTOMERS
# =============================================================================

def create_customer(document: AppData, payload: dict) -> tuple[AppData, Customer]:
    data = validate_payload(payload=payload, policy=CUSTOMER_POLICY, partial=False)
    phone = data["phone"]
    if any(c.phone == phone or c.id == phone for c in document.customers):
        raise ConflictError("Phone number already registered")

    draft = document.clone()
    customer = Customer(
        id=phone,
        name=data["name"],
        phone=phone,
        photo=data.get("photo") or None,
    )
    draft.customers.append(customer)
    append_audit_log(draft, "Add Customer", f"New client registered: {customer.name}")
    return draft, customer


def delete_customer(document: AppData, customer_id: str) -> tuple[AppData, Customer]:
    """
    Remove a customer profile.

    Their transactions stay in the log; any outstanding debt leaves
    accounts receivable with the profile.
    """
    customer = document.find_customer(customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")

    draft = document.clone()
    draft.customers = [c for c in draft.customers if c.id != customer_id]
    append_audit_log(draft, "Customer Deleted", f"Customer profile for {customer.name} was permanently removed.")
    return draft, customer


# =============================================================================
# SUPPLIERS
# =============================================================================

def create_supplier(document: AppData, payload: dict) -> tuple[AppData, Supplier]:
    data = validate_payload(payload=payload, policy=SUPPLIER_POLICY, partial=False)

    draft = document.clone()
    supplier = Supplier(
        id=generate_id(),
        name=data["name"],
        contact=data.get("contact") or "",
        phone=data["phone"],
        balance=Decimal("0"),
    )
    draft.suppliers.append(supplier)
    append_audit_log(draft, "Add Supplier", f"New supplier registered: {supplier.name}")
    return draft, supplier


def delete_supplier(document: AppData, supplier_id: str) -> tuple[AppData, Supplier]:
    supplier = document.find_supplier(supplier_id)
    if supplier is None:
        raise NotFoundError(f"Supplier {supplier_id} not found")

    draft = document.clone()
    draft.suppliers = [s for s in draft.suppliers if s.id != supplier_id]
    append_audit_log(draft, "Delete Supplier", f"Removed supplier: {supplier.name}")
    return draft, supplier


def search_suppliers(document: AppData, term: str | None = None) -> list[Supplier]:
    if not term:
        return list(document.suppliers)
    needle = term.lower()
    return [s for s in document.suppliers if needle in s.name.lower() or term in s.phone]


# =============================================================================
# USERS
# =============================================================================

def create_user(document: AppData, payload: dict) -> tuple[AppData, UserProfile]:
    data = validate_payload(payload=payload, policy=USER_POLICY, partial=False)

    draft = document.clone()
    user = UserProfile(
        id=generate_id(),
        name=data["name"],
        role=data.get("role") or ROLE_CASHIER,
        is_active=True,
        password=data.get("password") or None,
        avatar=data.get("avatar") or None,
    )
    draft.users.append(user)
    append_audit_log(draft, "User Created", f"New system user added: {user.name} as {user.role}")
    return draft, user


def delete_user(document: AppData, user_id: str) -> tuple[AppData, UserProfile]:
    user = document.find_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    if user.role == ROLE_ADMIN:
        raise CatalogError("Cannot delete an Administrator account.", details={"user_id": user_id})

    draft = document.clone()
    draft.users = [u for u in draft.users if u.id != user_id]
    append_audit_log(draft, "User Deleted", f"Removed access for: {user.name} ({user.role})")
    return draft, user


def switch_user(document: AppData, user_id: str) -> tuple[AppData, CurrentUser]:
    user = document.find_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    if not user.is_active:
        raise CatalogError("User is not active", details={"user_id": user_id})

    draft = document.clone()
    draft.settings.current_user = CurrentUser(name=user.name, role=user.role, avatar=user.avatar)
    append_audit_log(draft, "Login Simulation", f"Switched session to: {user.name}")
    return draft, draft.settings.current_user


# =============================================================================
# SETTINGS
# =============================================================================

def update_settings(document: AppData, payload: dict) -> tuple[AppData, dict]:
    data = validate_payload(payload=payload, policy=SETTINGS_POLICY, partial=True)
    if data.get("exchangeRate") is not None and data["exchangeRate"] <= ZERO:
        raise ValidationError("exchangeRate must be positive")
    if data.get("taxRate") is not None and data["taxRate"] < ZERO:
        raise ValidationError("taxRate cannot be negative")

    draft = document.clone()
    settings = draft.settings
    for key, value in data.items():
        if key == "autoSyncCloud":
            settings.sync_settings.auto_sync_cloud = bool(value)
            continue
        if key in ("exchangeRate", "taxRate", "defaultCurrency", "businessName") and value in (None, ""):
            continue
        setattr(settings, _SETTINGS_FIELDS[key], value if value != "" else None)

    append_audit_log(
        draft,
        "Settings Update",
        f"Business configuration updated. App Name: {settings.business_name}",
    )
    return draft, settings.to_dict()
