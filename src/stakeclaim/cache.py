import asyncio
import logging

from stakeclaim.models import EligibilityRecord

log = logging.getLogger("stakeclaim.cache")


class EligibilityCache:
    """Last known eligibility per account, to avoid re-reading the voters table.

    Only ever used to skip reads. The chain stays the authority for submissions, and
    the entry is dropped after every successful submission so the next cycle re-reads.

    Shared by all account loops. Writes go through one lock; lookups are a plain
    dict read and never wait on it.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._records: dict[str, EligibilityRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, account: str) -> bool:
        return account in self._records

    def lookup(self, account: str) -> EligibilityRecord | None:
        return self._records.get(account)

    async def store(self, account: str, record: EligibilityRecord) -> None:
        async with self._lock:
            self._records[account] = record
        log.debug("cached %s: %s", account, record)

    async def invalidate(self, account: str) -> None:
        async with self._lock:
            dropped = self._records.pop(account, None)
        if dropped is not None:
            log.debug("invalidated %s", account)
