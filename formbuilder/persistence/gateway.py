"""HTTP client for loading and storing form snapshots.

Neither ``load`` nor ``save`` raises: every failure is reported as a
``Notice`` so the editor can keep working on its in-memory document.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
import logging

import httpx

from formbuilder.model.document import FormDocument, SnapshotError, from_snapshot, to_snapshot

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0


@dataclass(frozen=True, slots=True)
class Notice:
    title: str
    message: str
    error: bool = False


@dataclass(frozen=True, slots=True)
class LoadResult:
    document: FormDocument | None = None
    notice: Notice | None = None


@dataclass(frozen=True, slots=True)
class SaveResult:
    ok: bool
    saved_at: datetime | None = None
    is_draft: bool = False
    notice: Notice | None = None


class PersistenceGateway:
    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    def load(self) -> LoadResult:
        try:
            response = self._client.get(self.url)
        except httpx.TimeoutException:
            logger.warning("load timed out: %s", self.url)
            return LoadResult(
                notice=Notice(
                    "Connection timeout",
                    "The connection to the form API timed out. Working in offline mode.",
                    error=True,
                )
            )
        except httpx.HTTPError as exc:
            logger.warning("load failed: %s", exc)
            return LoadResult(
                notice=Notice(
                    "Network error",
                    "Could not connect to the form API. Working in offline mode.",
                    error=True,
                )
            )

        if not response.is_success:
            logger.warning("load returned %s", response.status_code)
            return LoadResult(
                notice=Notice(
                    "Error loading form",
                    f"Server returned an error: {response.status_code} {response.reason_phrase}",
                    error=True,
                )
            )

        try:
            body = response.json()
        except ValueError:
            logger.warning("load returned a non-JSON body")
            return LoadResult()
        if not isinstance(body, dict) or not body.get("form"):
            return LoadResult()

        try:
            document = from_snapshot(body["form"])
        except SnapshotError as exc:
            logger.warning("ignoring malformed saved form: %s", exc)
            return LoadResult()

        return LoadResult(
            document=document,
            notice=Notice("Form loaded", "Your saved form has been loaded successfully."),
        )

    def save(
        self,
        document: FormDocument,
        as_draft: bool = False,
        now: datetime | None = None,
    ) -> SaveResult:
        saved_at = now or datetime.now(timezone.utc)
        snapshot = to_snapshot(replace(document, last_saved=saved_at, is_draft=as_draft))

        try:
            response = self._client.post(self.url, json={"form": snapshot})
        except httpx.TimeoutException:
            logger.warning("save timed out: %s", self.url)
            return SaveResult(
                ok=False,
                notice=Notice(
                    "Connection timeout",
                    "The connection to the form API timed out. Form was not saved.",
                    error=True,
                ),
            )
        except httpx.HTTPError as exc:
            logger.warning("save failed: %s", exc)
            return SaveResult(
                ok=False,
                notice=Notice(
                    "Network error",
                    "Could not connect to the form API. Form was not saved.",
                    error=True,
                ),
            )

        if not response.is_success:
            logger.warning("save returned %s", response.status_code)
            return SaveResult(
                ok=False,
                notice=Notice(
                    "Error saving form",
                    f"Server returned an error: {response.status_code} {response.reason_phrase}",
                    error=True,
                ),
            )

        if as_draft:
            notice = Notice("Draft Saved", "Your form draft has been saved.")
        else:
            notice = Notice("Form Saved", "Your form has been saved successfully.")
        return SaveResult(ok=True, saved_at=saved_at, is_draft=as_draft, notice=notice)

    def close(self) -> None:
        self._client.close()
