"""
Client-side history synchronizer.

Keeps two views of the calculation history:
- remote: the last list successfully fetched from the history service
- local: fallback entries created while the service was unreachable

Local entries are shown in front of the remote ones and are dropped on the
next successful fetch; they are never pushed to the service later.
"""

import itertools
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

API_URL = os.environ.get("CALCULATOR_HISTORY_URL", "http://localhost:5000/api/history")
HISTORY_LIMIT = 10
LOCAL_ID_PREFIX = "local-"


@dataclass(frozen=True)
class HistoryEntry:
    """A calculation as the client shows it."""
    id: str
    eq: str
    res: str

    @classmethod
    def from_record(cls, record: Dict) -> "HistoryEntry":
        """Map a service record ({id, equation, result, createdAt}) to an entry."""
        return cls(id=str(record["id"]), eq=record["equation"], res=record["result"])

    @property
    def is_local(self) -> bool:
        return self.id.startswith(LOCAL_ID_PREFIX)

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "eq": self.eq, "res": self.res}


class HistorySync:
    """Synchronizes the calculator history with the remote history service."""

    def __init__(
        self,
        base_url: str = API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 5.0,
    ):
        """
        Args:
            base_url: History collection URL (e.g. http://host:5000/api/history)
            transport: Optional httpx transport, used by tests
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout
        self.remote: List[HistoryEntry] = []
        self.local: List[HistoryEntry] = []
        self._local_ids = itertools.count(1)

    @property
    def entries(self) -> List[HistoryEntry]:
        """The visible history, newest first, never longer than the limit."""
        return (self.local + self.remote)[:HISTORY_LIMIT]

    def find(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((e for e in self.entries if e.id == entry_id), None)

    def _client(self) -> httpx.AsyncClient:
        # A fresh client per call: Flask runs each async view in its own event loop
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def load(self) -> List[HistoryEntry]:
        """
        Fetch the most recent calculations and replace the remote view.

        A failed fetch is logged and leaves both views untouched.

        Returns:
            The visible history after the fetch
        """
        try:
            async with self._client() as client:
                response = await client.get(self.base_url)
                response.raise_for_status()
                records = response.json()
            fetched = [HistoryEntry.from_record(r) for r in records][:HISTORY_LIMIT]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("Error fetching history: %s", e)
            return self.entries

        self.remote = fetched
        self.local = []
        return self.entries

    async def save(self, equation: str, result: str) -> List[HistoryEntry]:
        """
        Persist a calculation, then refresh from the service.

        If the service cannot store it, a local fallback entry is put in
        front of the history instead.
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    self.base_url, json={"equation": equation, "result": result}
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Error saving calculation: %s", e)
            entry = HistoryEntry(id=f"{LOCAL_ID_PREFIX}{next(self._local_ids)}", eq=equation, res=result)
            self.local = [entry] + self.local
            self.local = self.local[:HISTORY_LIMIT]
            return self.entries

        return await self.load()

    async def delete(self, entry_id: str) -> bool:
        """
        Delete one entry. It leaves the view only once the service confirms.

        Local fallback entries were never stored remotely and are removed
        without a request.

        Returns:
            True if the entry was removed from the view
        """
        if entry_id.startswith(LOCAL_ID_PREFIX):
            before = len(self.local)
            self.local = [e for e in self.local if e.id != entry_id]
            return len(self.local) != before

        try:
            async with self._client() as client:
                response = await client.delete(f"{self.base_url}/{entry_id}")
        except httpx.HTTPError as e:
            logger.error("Network error deleting history item: %s", e)
            return False

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else response.text
            logger.error("Server failed to delete %s: %s", entry_id, message)
            return False

        self.remote = [e for e in self.remote if e.id != entry_id]
        return True

    async def clear(self) -> bool:
        """Delete every entry on the service and empty the view on success."""
        try:
            async with self._client() as client:
                response = await client.delete(self.base_url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Error clearing history: %s", e)
            return False

        self.remote = []
        self.local = []
        return True
