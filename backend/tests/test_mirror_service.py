# Overview: Pytest coverage for the Supabase and gist mirrors over a mocked HTTP transport.

import json

import httpx
import pytest

from erp_master.models import AppSettings
from erp_master.services.mirror_service import (
    GIST_FILE_NAME,
    GistMirror,
    MirrorBadCredentials,
    MirrorError,
    MirrorNotConfigured,
    MirrorNotFound,
    MirrorPermissionDenied,
    MirrorTableMissing,
    SupabaseMirror,
    build_mirror,
)


PAYLOAD = {"products": [{"id": "p1", "name": "Widget"}], "transactions": []}


class Recorder:
    """MockTransport handler that records requests and replies from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return reply(request) if callable(reply) else reply


def supabase(routes):
    recorder = Recorder(routes)
    mirror = SupabaseMirror("https://demo.supabase.co/", "anon-key", transport=httpx.MockTransport(recorder))
    return mirror, recorder


def gist(routes, gist_id=None):
    recorder = Recorder(routes)
    mirror = GistMirror("ghp_token", gist_id, transport=httpx.MockTransport(recorder))
    return mirror, recorder


class TestSupabaseMirror:
    def test_push_upserts_master_row(self):
        mirror, recorder = supabase({("POST", "/rest/v1/erp_storage"): httpx.Response(201)})

        assert mirror.push(PAYLOAD) == "master_db"

        request = recorder.requests[0]
        assert request.url.params["on_conflict"] == "id"
        assert request.headers["Prefer"] == "resolution=merge-duplicates,return=minimal"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"
        body = json.loads(request.content)
        assert body["id"] == "master_db"
        assert body["payload"] == PAYLOAD
        assert body["updated_at"].endswith("Z")

    def test_pull_reads_payload_by_id(self):
        mirror, recorder = supabase({
            ("GET", "/rest/v1/erp_storage"): httpx.Response(200, json=[{"payload": PAYLOAD}]),
        })

        assert mirror.pull() == PAYLOAD
        assert recorder.requests[0].url.params["id"] == "eq.master_db"

    def test_pull_without_row(self):
        mirror, _ = supabase({("GET", "/rest/v1/erp_storage"): httpx.Response(200, json=[])})

        assert mirror.pull() is None

    @pytest.mark.parametrize("response, error", [
        (httpx.Response(404, json={"code": "42P01", "message": "relation does not exist"}), MirrorTableMissing),
        (httpx.Response(404, json={"code": "PGRST205", "message": "no table in schema cache"}), MirrorTableMissing),
        (httpx.Response(403, json={"code": "42501", "message": "permission denied"}), MirrorPermissionDenied),
        (httpx.Response(401, json={"message": "Invalid API key"}), MirrorBadCredentials),
        (httpx.Response(500, text="boom"), MirrorError),
    ])
    def test_errors_are_classified(self, response, error):
        mirror, _ = supabase({("GET", "/rest/v1/erp_storage"): response})

        with pytest.raises(error):
            mirror.test_connection()

    def test_table_missing_message(self):
        mirror, _ = supabase({("GET", "/rest/v1/erp_storage"): httpx.Response(404, json={"code": "42P01"})})

        with pytest.raises(MirrorTableMissing, match="TABLE_MISSING"):
            mirror.test_connection()

    def test_network_failure_is_a_mirror_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        mirror = SupabaseMirror("https://demo.supabase.co", "key", transport=httpx.MockTransport(refuse))

        with pytest.raises(MirrorError, match="connection refused"):
            mirror.push(PAYLOAD)

    def test_requires_credentials(self):
        with pytest.raises(MirrorNotConfigured):
            SupabaseMirror("", "key")


class TestGistMirror:
    def test_first_push_creates_private_gist(self):
        mirror, recorder = gist({("POST", "/gists"): httpx.Response(201, json={"id": "g123"})})

        assert mirror.push(PAYLOAD) == "g123"
        assert mirror.remote_id == "g123"

        body = json.loads(recorder.requests[0].content)
        assert body["public"] is False
        assert json.loads(body["files"][GIST_FILE_NAME]["content"]) == PAYLOAD
        assert recorder.requests[0].headers["Authorization"] == "token ghp_token"

    def test_later_push_patches_known_gist(self):
        mirror, recorder = gist({("PATCH", "/gists/g123"): httpx.Response(200, json={"id": "g123"})}, gist_id="g123")

        mirror.push(PAYLOAD)

        assert recorder.requests[0].method == "PATCH"

    def test_pull_finds_gist_by_file_name(self):
        mirror, recorder = gist({
            ("GET", "/gists"): httpx.Response(200, json=[
                {"id": "other", "files": {"notes.md": {"raw_url": "https://gist.example/raw/notes"}}},
                {"id": "g123", "files": {GIST_FILE_NAME: {"raw_url": "https://gist.example/raw/db"}}},
            ]),
            ("GET", "/raw/db"): httpx.Response(200, json=PAYLOAD),
        })

        assert mirror.pull() == PAYLOAD
        assert mirror.remote_id == "g123"
        assert str(recorder.requests[-1].url) == "https://gist.example/raw/db"

    def test_pull_without_matching_gist(self):
        mirror, _ = gist({("GET", "/gists"): httpx.Response(200, json=[])})

        assert mirror.pull() is None

    @pytest.mark.parametrize("status, error", [
        (401, MirrorBadCredentials),
        (403, MirrorPermissionDenied),
        (404, MirrorNotFound),
        (422, MirrorError),
    ])
    def test_errors_are_classified(self, status, error):
        mirror, _ = gist({("GET", "/gists"): httpx.Response(status, json={"message": "nope"})})

        with pytest.raises(error):
            mirror.test_connection()


class TestBuildMirror:
    def test_none_backend(self):
        assert build_mirror(AppSettings(), {"MIRROR_BACKEND": "none"}) is None

    def test_document_credentials_win_over_config(self):
        settings = AppSettings(supabase_url="https://doc.supabase.co", supabase_key="doc-key")

        mirror = build_mirror(settings, {
            "MIRROR_BACKEND": "supabase",
            "SUPABASE_URL": "https://env.supabase.co",
            "SUPABASE_KEY": "env-key",
        })

        assert isinstance(mirror, SupabaseMirror)
        assert mirror.base_url == "https://doc.supabase.co"
        mirror.close()

    def test_gist_uses_recorded_gist_id(self):
        settings = AppSettings()
        settings.sync_settings.github_gist_id = "g9"

        mirror = build_mirror(settings, {"MIRROR_BACKEND": "gist", "GITHUB_TOKEN": "env-token"})

        assert isinstance(mirror, GistMirror)
        assert mirror.remote_id == "g9"
        mirror.close()

    def test_missing_credentials(self):
        with pytest.raises(MirrorNotConfigured):
            build_mirror(AppSettings(), {"MIRROR_BACKEND": "gist"})
