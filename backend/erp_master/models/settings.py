from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .base import text, optional_text, money, integer, number, compact
from .sales import CURRENCY_USD


ROLE_ADMIN = "Admin"
ROLE_MANAGER = "Manager"
ROLE_CASHIER = "Cashier"

VALID_ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER)

DEFAULT_BUSINESS_NAME = "ERP MASTER"
DEFAULT_EXCHANGE_RATE = Decimal("125")


@dataclass
class CurrentUser:
    name: str
    role: str
    avatar: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "CurrentUser":
        return cls(
            name=text(raw, "name", "Admin User"),
            role=text(raw, "role", ROLE_ADMIN),
            avatar=optional_text(raw, "avatar"),
        )

    def to_dict(self) -> dict:
        return compact({"name": self.name, "role": self.role, "avatar": self.avatar})


@dataclass
class SyncSettings:
    auto_sync_cloud: bool = True
    last_synced_at: int = 0
    data_version: int = 1
    github_gist_id: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "SyncSettings":
        return cls(
            auto_sync_cloud=bool(raw.get("autoSyncCloud", True)),
            last_synced_at=integer(raw, "lastSyncedAt"),
            data_version=integer(raw, "dataVersion", 1),
            github_gist_id=optional_text(raw, "githubGistId"),
        )

    def to_dict(self) -> dict:
        return compact({
            "autoSyncCloud": self.auto_sync_cloud,
            "lastSyncedAt": self.last_synced_at,
            "dataVersion": self.data_version,
            "githubGistId": self.github_gist_id,
        })


@dataclass
class AppSettings:
    business_name: str = DEFAULT_BUSINESS_NAME
    exchange_rate: Decimal = DEFAULT_EXCHANGE_RATE
    tax_rate: Decimal = Decimal("0")
    default_currency: str = CURRENCY_USD
    current_user: CurrentUser = field(default_factory=lambda: CurrentUser(name="Admin User", role=ROLE_ADMIN))
    sync_settings: SyncSettings = field(default_factory=SyncSettings)
    business_logo: str | None = None
    auth_username: str | None = None
    auth_password: str | None = None
    supabase_url: str | None = None
    supabase_key: str | None = None
    github_token: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "AppSettings":
        defaults = cls()
        return cls(
            business_name=text(raw, "businessName", defaults.business_name),
            exchange_rate=money(raw, "exchangeRate") if raw.get("exchangeRate") is not None else defaults.exchange_rate,
            tax_rate=money(raw, "taxRate"),
            default_currency=text(raw, "defaultCurrency", defaults.default_currency),
            current_user=CurrentUser.from_dict(raw.get("currentUser") or {}),
            sync_settings=SyncSettings.from_dict(raw.get("syncSettings") or {}),
            business_logo=optional_text(raw, "businessLogo"),
            auth_username=optional_text(raw, "authUsername"),
            auth_password=optional_text(raw, "authPassword"),
            supabase_url=optional_text(raw, "supabaseUrl"),
            supabase_key=optional_text(raw, "supabaseKey"),
            github_token=optional_text(raw, "githubToken"),
        )

    def to_dict(self) -> dict:
        return compact({
            "businessName": self.business_name,
            "businessLogo": self.business_logo,
            "exchangeRate": number(self.exchange_rate),
            "taxRate": number(self.tax_rate),
            "defaultCurrency": self.default_currency,
            "authUsername": self.auth_username,
            "authPassword": self.auth_password,
            "supabaseUrl": self.supabase_url,
            "supabaseKey": self.supabase_key,
            "githubToken": self.github_token,
            "currentUser": self.current_user.to_dict(),
            "syncSettings": self.sync_settings.to_dict(),
        })


@dataclass
class UserProfile:
    id: str
    name: str
    role: str
    is_active: bool = True
    password: str | None = None
    avatar: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "UserProfile":
        return cls(
            id=text(raw, "id"),
            name=text(raw, "name"),
            role=text(raw, "role", ROLE_CASHIER),
            is_active=bool(raw.get("isActive", True)),
            password=optional_text(raw, "password"),
            avatar=optional_text(raw, "avatar"),
        )

    def to_dict(self) -> dict:
        return compact({
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "password": self.password,
            "isActive": self.is_active,
            "avatar": self.avatar,
        })
