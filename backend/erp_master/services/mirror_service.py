# Overview: Remote mirrors for the shared document (PostgREST table row or private GitHub gist).

"""
Remote Mirror

A mirror holds one full copy of the document somewhere off-box. It is a
backup target, not a database: push overwrites, pull reads the whole thing
back, and nothing detects two writers (last push wins).

Implementations:
- SupabaseMirror: one row (id="master_db") in the erp_storage table, spoken
  to over PostgREST with an upsert on the id column.
- GistMirror: one JSON file inside a private gist; the first push creates the
  gist, later pushes patch it by id.

Failures are raised as MirrorError subclasses so callers can show a
classified message (table missing, permission denied, bad credentials).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from ..config import MIRROR_NONE, MIRROR_SUPABASE, MIRROR_GIST, VALID_MIRROR_BACKENDS
from ..models import AppSettings
from ..time_utils import utcnow, to_utc_z


logger = logging.getLogger(__name__)


SUPABASE_TABLE = "erp_storage"
SUPABASE_ROW_ID = "master_db"

GITHUB_API_URL = "https://api.github.com"
GIST_FILE_NAME = "XAYSIMO_ERP_MASTER_DATABASE.json"

DEFAULT_TIMEOUT = 15.0


class MirrorError(Exception):
    """Raised when a remote mirror operation fails."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class MirrorNotConfigured(MirrorError):
    pass


class MirrorTableMissing(MirrorError):
    pass


class MirrorPermissionDenied(MirrorError):
    pass


class MirrorBadCredentials(MirrorError):
    pass


class MirrorNotFound(MirrorError):
    pass


class RemoteMirror:
    """Capability interface every mirror backend implements."""

    name = MIRROR_NONE

    @property
    def remote_id(self) -> str | None:
        """Backend-specific handle of the stored copy, when it has one."""
        return None

    def push(self, payload: dict) -> str | None:
        raise NotImplementedError

    def pull(self) -> dict | None:
        raise NotImplementedError

    def test_connection(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


def _error_body(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# =============================================================================
# SUPABASE (PostgREST)
# =============================================================================

class SupabaseMirror(RemoteMirror):
    name = MIRROR_SUPABASE

    def __init__(
        self,
        url: str,
        key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        if not url or not key:
            raise MirrorNotConfigured("Supabase URL and key are required")
        self.base_url = url.rstrip("/")
        self.client = httpx.Client(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def remote_id(self) -> str | None:
        return SUPABASE_ROW_ID

    def _raise_for(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        body = _error_body(response)
        code = body.get("code")
        message = body.get("message") or response.text or f"HTTP {response.status_code}"
        details = {"status": response.status_code, "code": code}

        if code in ("42P01", "PGRST205"):
            raise MirrorTableMissing(
                f"TABLE_MISSING: The '{SUPABASE_TABLE}' table does not exist. Create it before syncing.",
                details=details,
            )
        if code == "42501":
            raise MirrorPermissionDenied(
                "PERMISSION_DENIED: Row level security policies are blocking access.",
                details=details,
            )
        if response.status_code == 401:
            raise MirrorBadCredentials("Bad credentials: the Supabase API key was rejected.", details=details)
        raise MirrorError(f"{action} failed: {code + ': ' if code else ''}{message}", details=details)

    def _request(self, method: str, path: str, action: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise MirrorError(f"{action} failed: {e}") from e
        self._raise_for(response, action)
        return response

    def test_connection(self) -> None:
        self._request("GET", f"/{SUPABASE_TABLE}", "Connection test", params={"select": "id", "limit": "1"})

    def push(self, payload: dict) -> str | None:
        row = {
            "id": SUPABASE_ROW_ID,
            "payload": payload,
            "updated_at": to_utc_z(utcnow()),
        }
        self._request(
            "POST",
            f"/{SUPABASE_TABLE}",
            "Push",
            params={"on_conflict": "id"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            content=json.dumps(row),
        )
        return SUPABASE_ROW_ID

    def pull(self) -> dict | None:
        response = self._request(
            "GET",
            f"/{SUPABASE_TABLE}",
            "Pull",
            params={"select": "payload", "id": f"eq.{SUPABASE_ROW_ID}"},
        )
        rows = response.json()
        if not rows:
            return None
        return rows[0].get("payload") or None

    def close(self) -> None:
        self.client.close()


# =============================================================================
# GITHUB GIST
# =============================================================================

class GistMirror(RemoteMirror):
    name = MIRROR_GIST

    def __init__(
        self,
        token: str,
        gist_id: str | None = None,
        *,
        api_url: str = GITHUB_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        if not token:
            raise MirrorNotConfigured("A GitHub token is required")
        self.gist_id = gist_id
        self.client = httpx.Client(
            base_url=api_url,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github.v3+json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def remote_id(self) -> str | None:
        return self.gist_id

    def _raise_for(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        details = {"status": response.status_code}
        if response.status_code == 401:
            raise MirrorBadCredentials(
                "Bad credentials: Your GitHub token is invalid or has expired.",
                details=details,
            )
        if response.status_code == 403:
            raise MirrorPermissionDenied("The GitHub token is not allowed to manage gists.", details=details)
        if response.status_code == 404:
            raise MirrorNotFound(f"{action} failed: gist not found", details=details)
        message = _error_body(response).get("message")
        raise MirrorError(message or f"GitHub API Error ({response.status_code})", details=details)

    def _request(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise MirrorError(f"{action} failed: {e}") from e
        self._raise_for(response, action)
        return response

    def test_connection(self) -> None:
        self._request("GET", "/gists", "Connection test", params={"per_page": "1"})

    def push(self, payload: dict) -> str | None:
        body = {
            "description": f"ERP Master Database Sync - {to_utc_z(utcnow())}",
            "public": False,
            "files": {
                GIST_FILE_NAME: {"content": json.dumps(payload, indent=2)},
            },
        }
        if self.gist_id:
            response = self._request("PATCH", f"/gists/{self.gist_id}", "Push", json=body)
        else:
            response = self._request("POST", "/gists", "Push", json=body)
        self.gist_id = response.json().get("id") or self.gist_id
        return self.gist_id

    def _find_gist(self) -> dict | None:
        response = self._request("GET", "/gists", "Pull")
        for gist in response.json():
            if GIST_FILE_NAME in (gist.get("files") or {}):
                return gist
        return None

    def pull(self) -> dict | None:
        gist = self._find_gist()
        if gist is None:
            return None
        self.gist_id = gist.get("id") or self.gist_id

        raw_url = gist["files"][GIST_FILE_NAME].get("raw_url")
        if not raw_url:
            raise MirrorError("Pull failed: gist file has no download URL")
        response = self._request("GET", raw_url, "Pull")
        try:
            return response.json()
        except ValueError as e:
            raise MirrorError("Pull failed: gist file is not valid JSON") from e

    def close(self) -> None:
        self.client.close()


# =============================================================================
# FACTORY
# =============================================================================

def build_mirror(settings: AppSettings, config: Mapping[str, Any]) -> RemoteMirror | None:
    """
    Mirror for the configured backend, or None when mirroring is off.

    Credentials stored in the document settings win over the environment
    fallbacks in config.

    Raises:
        MirrorNotConfigured: Unknown backend or missing credentials
    """
    backend = (config.get("MIRROR_BACKEND") or MIRROR_NONE).lower()
    if backend not in VALID_MIRROR_BACKENDS:
        raise MirrorNotConfigured(f"Unknown mirror backend: {backend}")
    if backend == MIRROR_NONE:
        return None

    timeout = float(config.get("MIRROR_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT)
    transport = config.get("MIRROR_TRANSPORT")

    if backend == MIRROR_SUPABASE:
        return SupabaseMirror(
            settings.supabase_url or config.get("SUPABASE_URL") or "",
            settings.supabase_key or config.get("SUPABASE_KEY") or "",
            timeout=timeout,
            transport=transport,
        )

    return GistMirror(
        settings.github_token or config.get("GITHUB_TOKEN") or "",
        settings.sync_settings.github_gist_id,
        timeout=timeout,
        transport=transport,
    )
