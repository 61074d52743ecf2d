import asyncio
import contextlib
import logging
import signal
from typing import Sequence

import httpx

from stakeclaim.actions import ActionContext
from stakeclaim.cache import EligibilityCache
from stakeclaim.chain import Ledger, LedgerClient, RPC_TIMEOUT
from stakeclaim.endpoints import EndpointPool
from stakeclaim.gateway import SubmissionGateway
from stakeclaim.models import Account
from stakeclaim.scheduler import AccountScheduler, Schedule

log = logging.getLogger("stakeclaim.supervisor")

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run_schedulers(
    accounts: Sequence[Account],
    gateway: SubmissionGateway,
    *,
    schedule: Schedule,
    stop: asyncio.Event,
) -> list[AccountScheduler]:
    """One claim loop per account; returns once every loop has finished."""
    schedulers = [AccountScheduler(a, gateway, schedule=schedule, stop=stop) for a in accounts]
    async with asyncio.TaskGroup() as tg:
        for s in schedulers:
            tg.create_task(s.run(), name=s.account.address)
    return schedulers


async def supervise(
    accounts: Sequence[Account],
    cfg: dict,
    *,
    stop: asyncio.Event | None = None,
    ledger: Ledger | None = None,
) -> list[AccountScheduler]:
    """Run every account's claim loop until `stop` is set (or SIGINT/SIGTERM).

    Raises:
        ConfigError: the endpoint list is empty.
    """
    stop = stop or asyncio.Event()
    pool = EndpointPool(cfg["chain"].get("endpoints", []))
    cache = EligibilityCache()
    schedule = Schedule.from_config(cfg["schedule"])
    timeout = float(cfg.get("timeout", {}).get("rpc", RPC_TIMEOUT))

    loop = asyncio.get_running_loop()
    installed = []
    for sig in STOP_SIGNALS:
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, stop.set)
            installed.append(sig)

    log.info("Running %d account(s) against %d endpoint(s)", len(accounts), len(pool))
    try:
        async with httpx.AsyncClient(timeout=timeout) as http:
            gateway = SubmissionGateway(
                pool,
                ledger or LedgerClient.from_config(http, cfg),
                cache,
                action_ctx=ActionContext.from_config(cfg["chain"]),
            )
            return await run_schedulers(accounts, gateway, schedule=schedule, stop=stop)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        log.info("All claim loops stopped")
