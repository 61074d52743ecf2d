import logging
from typing import Sequence

from stakeclaim.actions import ActionContext, build_actions
from stakeclaim.cache import EligibilityCache
from stakeclaim.chain import Ledger, LedgerError
from stakeclaim.constants import Stage
from stakeclaim.endpoints import EndpointPool
from stakeclaim.models import Account, Action, EligibilityRecord

log = logging.getLogger("stakeclaim.gateway")


class SubmissionGateway:
    """Everything an account loop needs from the chain, on a random endpoint per call."""

    def __init__(
        self,
        pool: EndpointPool,
        ledger: Ledger,
        cache: EligibilityCache,
        *,
        action_ctx: ActionContext | None = None,
    ) -> None:
        self.pool = pool
        self.ledger = ledger
        self.cache = cache
        self.action_ctx = action_ctx or ActionContext()

    async def read_eligibility(self, account: Account) -> EligibilityRecord:
        """Cached eligibility for `account`, reading the voters table on a miss.

        Raises:
            LedgerError: the read failed; nothing is cached.
        """
        addr = account.address
        if (record := self.cache.lookup(addr)) is not None:
            return record

        endpoint = self.pool.pick()
        log.info("Fetching voter info for account %s using %s", addr, endpoint)
        row = await self.ledger.get_voter(endpoint, addr)
        if row is None:
            log.info("Account %s has not voted yet", addr)

        try:
            record = EligibilityRecord.from_voter_row(row)
        except ValueError as e:
            raise LedgerError(f"Error decoding voter info for account {addr}: {e}", stage=Stage.READ, endpoint=endpoint) from e

        await self.cache.store(addr, record)
        return record

    def build_actions(self, account: Account, record: EligibilityRecord) -> list[Action]:
        return build_actions(self.action_ctx, account, record)

    async def submit(self, account: Account, actions: Sequence[Action]) -> str:
        """Sign and push `actions` for `account`. Returns the transaction id.

        On success the account's cached eligibility is dropped so the next cycle
        sees the new claim time.

        Raises:
            LedgerError: any stage failed. The cache entry is left as it was.
        """
        endpoint = self.pool.pick()
        log.info("Sending transaction for account %s using %s (%s)", account.address, endpoint, ", ".join(a.name for a in actions))
        try:
            txid = await self.ledger.push_actions(endpoint, actions, account.private_key)
        except LedgerError as e:
            log.error("Transaction failed for account %s at %s stage: %s", account.address, e.stage, e)
            raise

        await self.cache.invalidate(account.address)
        log.info("Transaction success for account %s: %s", account.address, txid)
        return txid
