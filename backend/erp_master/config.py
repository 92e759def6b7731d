# backend/erp_master/config.py
from __future__ import annotations
import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/erp_master.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///erp_master.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Key of the single persisted document row
    DOCUMENT_KEY = os.environ.get("DOCUMENT_KEY", "ultimate_erp_master_data_v2")

    # "block" rejects a purchase the funding account cannot cover, "warn" records it anyway
    PURCHASE_FUNDS_POLICY = os.environ.get("PURCHASE_FUNDS_POLICY", "block")

    # "current" values a loss reversal at today's cost, "recorded" at the cost captured on the adjustment
    LOSS_REVERSAL_COST_BASIS = os.environ.get("LOSS_REVERSAL_COST_BASIS", "current")

    # Fixed offset of the shop's local day from UTC, in minutes (180 = UTC+3)
    BUSINESS_UTC_OFFSET_MINUTES = _env_int("BUSINESS_UTC_OFFSET_MINUTES", 0)

    # Remote mirror: "none", "supabase" or "gist"
    MIRROR_BACKEND = os.environ.get("MIRROR_BACKEND", "none")
    MIRROR_DEBOUNCE_SECONDS = _env_float("MIRROR_DEBOUNCE_SECONDS", 5.0)
    MIRROR_TIMEOUT_SECONDS = _env_float("MIRROR_TIMEOUT_SECONDS", 15.0)
    MIRROR_RECOVER_ON_START = os.environ.get("MIRROR_RECOVER_ON_START", "true").lower() == "true"

    # Fallbacks for credentials normally kept in the document settings
    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_KEY = os.environ.get("SUPABASE_KEY")
    GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


FUNDS_POLICY_BLOCK = "block"
FUNDS_POLICY_WARN = "warn"
VALID_FUNDS_POLICIES = (FUNDS_POLICY_BLOCK, FUNDS_POLICY_WARN)

COST_BASIS_CURRENT = "current"
COST_BASIS_RECORDED = "recorded"
VALID_COST_BASES = (COST_BASIS_CURRENT, COST_BASIS_RECORDED)

MIRROR_NONE = "none"
MIRROR_SUPABASE = "supabase"
MIRROR_GIST = "gist"
VALID_MIRROR_BACKENDS = (MIRROR_NONE, MIRROR_SUPABASE, MIRROR_GIST)

MAX_UTC_OFFSET_MINUTES = 14 * 60


def validate_config(config) -> None:
    """Normalize the policy flags to lower case and reject unknown values."""
    checks = (
        ("PURCHASE_FUNDS_POLICY", VALID_FUNDS_POLICIES),
        ("LOSS_REVERSAL_COST_BASIS", VALID_COST_BASES),
        ("MIRROR_BACKEND", VALID_MIRROR_BACKENDS),
    )
    for key, allowed in checks:
        value = str(config.get(key, "")).lower()
        if value not in allowed:
            raise ValueError(f"{key} must be one of {', '.join(allowed)} (got {config.get(key)!r})")
        config[key] = value

    offset = int(config.get("BUSINESS_UTC_OFFSET_MINUTES", 0))
    if not -MAX_UTC_OFFSET_MINUTES <= offset <= MAX_UTC_OFFSET_MINUTES:
        raise ValueError(f"BUSINESS_UTC_OFFSET_MINUTES must be within +/-{MAX_UTC_OFFSET_MINUTES} (got {offset})")
    config["BUSINESS_UTC_OFFSET_MINUTES"] = offset
