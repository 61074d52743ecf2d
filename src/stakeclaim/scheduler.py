"""Per-account claim loop.

Each pass reads the account's eligibility (cached), then either waits, polling at
most hourly and more finely as the deadline nears, or submits claim + revote and
cools down so the next read sees the new state. Failed reads and failed
submissions are retried on the same cadence; the next eligibility read decides.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from stakeclaim.chain import LedgerError
from stakeclaim.constants import CycleState
from stakeclaim.gateway import SubmissionGateway
from stakeclaim.models import Account

log = logging.getLogger("stakeclaim.scheduler")


@dataclass(frozen=True)
class Schedule:
    claim_interval: timedelta = timedelta(hours=24)
    max_sleep: timedelta = timedelta(hours=1)
    wake_pad: timedelta = timedelta(seconds=5)
    cooldown: timedelta = timedelta(seconds=30)
    retry_delay: timedelta = timedelta(seconds=30)

    @classmethod
    def from_config(cls, schedule: dict) -> "Schedule":
        """Build from the [schedule] table, values in seconds."""
        defaults = cls()
        def secs(key: str) -> timedelta:
            value = schedule.get(key)
            return getattr(defaults, key) if value is None else timedelta(seconds=float(value))
        return cls(
            claim_interval=secs("claim_interval"),
            max_sleep=secs("max_sleep"),
            wake_pad=secs("wake_pad"),
            cooldown=secs("cooldown"),
            retry_delay=secs("retry_delay"),
        )


DEFAULT_SCHEDULE = Schedule()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_sleep(last_claim: datetime, now: datetime, schedule: Schedule = DEFAULT_SCHEDULE) -> timedelta | None:
    """How long to wait before checking again, or None if the account can claim now."""
    elapsed = now - last_claim
    if elapsed >= schedule.claim_interval:
        return None
    remaining = schedule.claim_interval - elapsed
    return max(min(remaining, schedule.max_sleep), timedelta(0)) + schedule.wake_pad


async def pause(stop: asyncio.Event, seconds: float) -> bool:
    """Sleep for `seconds` or until `stop` is set. Returns True if stopped."""
    if seconds <= 0:
        await asyncio.sleep(0)
        return stop.is_set()
    try:
        await asyncio.wait_for(stop.wait(), timeout=seconds)
    except TimeoutError:
        return False
    return True


class AccountScheduler:
    def __init__(
        self,
        account: Account,
        gateway: SubmissionGateway,
        *,
        schedule: Schedule = DEFAULT_SCHEDULE,
        stop: asyncio.Event | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.account = account
        self.gateway = gateway
        self.schedule = schedule
        self.stop = stop or asyncio.Event()
        self.clock = clock
        self.state = CycleState.CHECK_ELIGIBILITY
        self.submissions = 0
        self.failures = 0

    def __str__(self):
        return f"{self.account.address} -- {self.state}"

    async def step(self) -> tuple[CycleState, float]:
        """Run one pass of the cycle. Returns the state reached and the seconds to pause."""
        addr = self.account.address
        self.state = CycleState.CHECK_ELIGIBILITY
        try:
            record = await self.gateway.read_eligibility(self.account)
        except LedgerError as e:
            self.failures += 1
            log.warning(
                "Error fetching voter info for account %s using %s: %s (retrying in %s)",
                addr, e.endpoint, e, self.schedule.retry_delay,
            )
            return self.state, self.schedule.retry_delay.total_seconds()

        delay = compute_sleep(record.last_claim, self.clock(), self.schedule)
        if delay is not None:
            self.state = CycleState.WAITING
            log.info("Account %s Sleeping %s", addr, delay)
            return self.state, delay.total_seconds()

        self.state = CycleState.SUBMITTING
        actions = self.gateway.build_actions(self.account, record)
        try:
            await self.gateway.submit(self.account, actions)
        except LedgerError:
            self.failures += 1
        else:
            self.submissions += 1

        # Failed or not, the next eligibility read tells us whether to go again
        self.state = CycleState.COOLDOWN
        log.debug("%s cooldown %s (submissions=%d failures=%d)", addr, self.schedule.cooldown, self.submissions, self.failures)
        return self.state, self.schedule.cooldown.total_seconds()

    async def run(self) -> None:
        log.info("Starting claim loop for account %s", self.account)
        while not self.stop.is_set():
            _, delay = await self.step()
            if await pause(self.stop, delay):
                break
        log.info("Claim loop for account %s stopped (submissions=%d failures=%d)", self.account.address, self.submissions, self.failures)
