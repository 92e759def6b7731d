# Overview: Owner of the shared document snapshot; commits, local persistence and mirror scheduling.

"""
Document Store

The whole business state is one AppData document. The store holds the
committed snapshot and is the only writer:

- apply(handler, ...) runs a handler under a single-writer lock. The handler
  receives the committed snapshot and returns (new_document, result). If it
  hands back the same object nothing changed and nothing is committed.
- A commit stamps lastModified, bumps syncSettings.dataVersion, swaps the
  snapshot, writes it to the erp_storage row and re-arms the mirror timer.
- Committed snapshots are never mutated afterwards, so readers can use the
  snapshot they got without holding the lock.

Local write failures are logged and the in-memory snapshot stays current.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, TypeVar

from flask import Flask, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..config import MIRROR_NONE, MIRROR_GIST
from ..extensions import db
from ..models import AppData, StoredDocument, initial_document
from ..time_utils import now_ms
from .mirror_service import MirrorError, MirrorNotConfigured, build_mirror
from .sync_service import MirrorScheduler


logger = logging.getLogger(__name__)

EXTENSION_KEY = "erp_document_store"

R = TypeVar("R")


class DocumentError(Exception):
    """Raised when the stored document cannot be loaded or replaced."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class DocumentStore:
    def __init__(self, app: Flask | None = None):
        self.app: Flask | None = None
        self._document: AppData | None = None
        self._lock = threading.RLock()
        self.scheduler: MirrorScheduler | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self.app = app
        self.scheduler = MirrorScheduler(
            self._push_latest,
            debounce_seconds=float(app.config.get("MIRROR_DEBOUNCE_SECONDS", 5.0)),
        )
        app.extensions[EXTENSION_KEY] = self

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def key(self) -> str:
        return self.app.config["DOCUMENT_KEY"]

    @property
    def mirror_backend(self) -> str:
        return (self.app.config.get("MIRROR_BACKEND") or MIRROR_NONE).lower()

    def snapshot(self) -> AppData:
        with self._lock:
            if self._document is None:
                self._document = self._load()
            return self._document

    def load(self) -> AppData:
        """Discard the cached snapshot and read the stored row again."""
        with self._lock:
            self._document = self._load()
            return self._document

    def _load(self) -> AppData:
        row = db.session.get(StoredDocument, self.key)
        if row is None:
            logger.info("No stored document under %s; seeding first-run data", self.key)
            document = initial_document()
            self._persist(document.to_dict())
            return document

        payload = row.payload
        if not isinstance(payload, dict):
            raise DocumentError("Stored document is not a JSON object", details={"key": self.key})
        return AppData.from_dict(payload)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def apply(self, handler: Callable[..., tuple[AppData, R]], *args, **kwargs) -> R:
        """Run one handler against the committed snapshot and commit its result."""
        with self._lock:
            current = self.snapshot()
            document, result = handler(current, *args, **kwargs)
            if document is not current:
                self._commit(document)
            return result

    def replace(self, document: AppData, *, notify: bool = True) -> AppData:
        """Swap in a whole document (backup restore, cloud pull)."""
        if not isinstance(document, AppData):
            raise DocumentError("replace() expects an AppData document")
        with self._lock:
            self._commit(document, notify=notify)
            return document

    def reset(self) -> AppData:
        return self.replace(initial_document())

    def _commit(self, document: AppData, *, notify: bool = True) -> None:
        document.last_modified = now_ms()
        document.settings.sync_settings.data_version += 1
        # Serialize before the swap: a document that cannot be written is never committed
        payload = document.to_dict()
        self._document = document
        self._persist(payload)
        if notify:
            self._schedule(document)

    def _persist(self, payload: dict) -> None:
        try:
            row = db.session.get(StoredDocument, self.key)
            if row is None:
                row = StoredDocument(id=self.key, payload=payload)
                db.session.add(row)
            else:
                row.payload = payload
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to persist document %s", self.key)

    # -------------------------------------------------------------------------
    # Mirror
    # -------------------------------------------------------------------------

    def _schedule(self, document: AppData) -> None:
        if self.mirror_backend == MIRROR_NONE:
            return
        if not document.settings.sync_settings.auto_sync_cloud:
            return
        self.scheduler.notify()

    def _mirror(self, document: AppData):
        mirror = build_mirror(document.settings, self.app.config)
        if mirror is None:
            raise MirrorNotConfigured("No mirror backend is configured")
        return mirror

    def _push_latest(self) -> str | None:
        # Runs on the timer thread as well as in requests
        with self.app.app_context():
            document = self.snapshot()
            mirror = self._mirror(document)
            try:
                remote_id = mirror.push(document.to_dict())
            finally:
                mirror.close()
            self.record_sync(now_ms(), remote_id)
            logger.info("Pushed document %s to %s mirror", self.key, mirror.name)
            return remote_id

    def push_now(self) -> str | None:
        """Manual push; raises MirrorError subclasses on failure."""
        return self.scheduler.run_now()

    def record_sync(self, synced_at: int, remote_id: str | None = None) -> AppData:
        """
        Write lastSyncedAt (and the gist id after a first gist push) back into
        the stored document. This is bookkeeping about the mirror itself, so
        it neither bumps the data version nor schedules another push.
        """
        with self._lock:
            draft = self.snapshot().clone()
            sync = draft.settings.sync_settings
            sync.last_synced_at = synced_at
            if remote_id and self.mirror_backend == MIRROR_GIST:
                sync.github_gist_id = remote_id
            payload = draft.to_dict()
            self._document = draft
            self._persist(payload)
            return draft

    def test_mirror(self) -> str:
        mirror = self._mirror(self.snapshot())
        try:
            mirror.test_connection()
        finally:
            mirror.close()
        return mirror.name

    def pull(self) -> AppData | None:
        """
        Replace the local document with the mirror's copy.

        Returns None when the mirror holds nothing yet. The pulled document is
        committed without scheduling a push back.
        """
        mirror = self._mirror(self.snapshot())
        try:
            payload = mirror.pull()
            remote_id = mirror.remote_id
        finally:
            mirror.close()
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise DocumentError("Mirror returned something other than a document")

        document = AppData.from_dict(payload)
        if remote_id and self.mirror_backend == MIRROR_GIST:
            document.settings.sync_settings.github_gist_id = remote_id
        return self.replace(document, notify=False)

    def recover_from_mirror(self) -> bool:
        """
        Startup recovery: an empty catalog locally means a fresh device, so
        try to pull the mirror's copy. Failures are logged and ignored.
        """
        if self.mirror_backend == MIRROR_NONE:
            return False
        if self.snapshot().products:
            return False
        try:
            return self.pull() is not None
        except MirrorError as e:
            logger.warning("Startup recovery from mirror failed: %s", e)
            return False


def get_document_store() -> DocumentStore:
    return current_app.extensions[EXTENSION_KEY]
