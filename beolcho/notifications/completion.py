"""
Completion notices for customers.

When one of a customer's reservations reaches COMPLETED the customer is
shown a one-time "work completed" prompt. Whether the prompt was already
shown is remembered per device in a small acknowledgment store keyed by
reservation id; there is no server-side read receipt, so a different
device or a cleared store shows the prompt again.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional, Union

import httpx

from .. import config
from ..models import ReservationStatus

logger = logging.getLogger(__name__)

ACK_KEY_PREFIX = "notified_completion_"
DEFAULT_POLL_SECONDS = 30.0


def ack_key(reservation_id: str) -> str:
    return f"{ACK_KEY_PREFIX}{reservation_id}"


class MemoryAcknowledgmentStore:
    """Acknowledgments held for the life of the process"""

    def __init__(self):
        self._keys: set[str] = set()

    def contains(self, key: str) -> bool:
        return key in self._keys

    def add(self, key: str) -> None:
        self._keys.add(key)

    def clear(self) -> None:
        self._keys.clear()


class FileAcknowledgmentStore:
    """
    Device-local acknowledgments persisted as a JSON object of
    `{"notified_completion_<id>": true}` entries.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path or config.COMPLETION_ACK_PATH)
        self._keys = self._load()

    def _load(self) -> set[str]:
        if not self.path.exists():
            return set()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Unreadable acknowledgment file {self.path}, starting empty: {e}")
            return set()
        if not isinstance(data, dict):
            return set()
        return {key for key, value in data.items() if value}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({key: True for key in sorted(self._keys)}), encoding="utf-8")
        os.replace(tmp, self.path)

    def contains(self, key: str) -> bool:
        return key in self._keys

    def add(self, key: str) -> None:
        if key in self._keys:
            return
        self._keys.add(key)
        self._save()

    def clear(self) -> None:
        self._keys.clear()
        if self.path.exists():
            self.path.unlink()


def _field(reservation, name: str):
    if isinstance(reservation, dict):
        return reservation.get(name)
    return getattr(reservation, name, None)


class CompletionWatcher:
    """Decides which completed reservations still need the prompt."""

    def __init__(self, store=None):
        self.store = store if store is not None else MemoryAcknowledgmentStore()

    def observe(self, reservations: Iterable) -> list:
        """
        Completed, unacknowledged reservations from one observation.
        Accepts API dicts or objects with `id` and `status`.
        """
        pending = []
        for reservation in reservations:
            status = _field(reservation, "status")
            if status != ReservationStatus.COMPLETED.value:
                continue
            if self.store.contains(ack_key(_field(reservation, "id"))):
                continue
            pending.append(reservation)
        return pending

    def acknowledge(self, reservation_id: str) -> None:
        """Called once the customer dismisses the prompt"""
        self.store.add(ack_key(reservation_id))
        logger.info(f"✅ Completion of reservation {reservation_id} acknowledged")


class CompletionPoller:
    """
    Client-side loop: fetches the customer's completed reservations and
    hands each new one to a callback, acknowledging it once the callback
    returns.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        watcher: Optional[CompletionWatcher] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.watcher = watcher or CompletionWatcher(FileAcknowledgmentStore())
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=10.0)
        self._headers = {"Authorization": f"Bearer {token}"}

    async def fetch_completed(self) -> list[dict]:
        resp = await self._client.get(
            "/reservations/me",
            params={"status": ReservationStatus.COMPLETED.value},
            headers=self._headers,
        )
        resp.raise_for_status()
        return resp.json()

    async def poll_once(self, on_completed: Callable[[dict], Awaitable[None]]) -> int:
        shown = 0
        for reservation in self.watcher.observe(await self.fetch_completed()):
            await on_completed(reservation)
            self.watcher.acknowledge(reservation["id"])
            shown += 1
        return shown

    async def run(self, on_completed: Callable[[dict], Awaitable[None]], interval: float = DEFAULT_POLL_SECONDS):
        """Poll until cancelled; a failed poll is logged and retried next round."""
        while True:
            try:
                await self.poll_once(on_completed)
            except httpx.HTTPError as e:
                logger.warning(f"⚠️ Completion poll failed: {e}")
            await asyncio.sleep(interval)

    async def aclose(self) -> None:
        await self._client.aclose()
