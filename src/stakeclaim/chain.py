"""Remote ledger boundary: voters table reads over HTTP and transaction pushes.

Reads go straight to the chain API with httpx. Transaction assembly, signing and
the push are delegated to pyntelope, whose client is blocking, so that part runs
in a worker thread.
"""

import asyncio
import logging
from typing import Protocol, Sequence

import httpx
import pyntelope

from stakeclaim.constants import Stage
from stakeclaim.models import Action

log = logging.getLogger("stakeclaim.chain")

GET_TABLE_ROWS = "/v1/chain/get_table_rows"
RPC_TIMEOUT = 10.0


class LedgerError(RuntimeError):
    """A remote call failed. Transient: the caller retries on its own cadence."""

    def __init__(self, message: str, *, stage: Stage, endpoint: str) -> None:
        super().__init__(message)
        self.stage = stage
        self.endpoint = endpoint


class Ledger(Protocol):
    async def get_voter(self, endpoint: str, account: str) -> dict | None: ...
    async def push_actions(self, endpoint: str, actions: Sequence[Action], private_key: str) -> str: ...


def base_url(endpoint: str) -> str:
    if endpoint.startswith(("http://", "https://")):
        return endpoint.rstrip("/")
    return f"https://{endpoint}"


def _to_value(value):
    # Every field of the actions we send is an account name or a list of them
    if isinstance(value, (list, tuple)):
        return pyntelope.types.Array(type_=pyntelope.types.Name, values=[pyntelope.types.Name(v) for v in value])
    return pyntelope.types.Name(value)


def to_pyntelope(action: Action) -> pyntelope.Action:
    return pyntelope.Action(
        account=action.account,
        name=action.name,
        data=[pyntelope.Data(name=k, value=_to_value(v)) for k, v in action.data.items()],
        authorization=[
            pyntelope.Authorization(actor=a.actor, permission=a.permission) for a in action.authorization
        ],
    )


class LedgerClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        contract: str = "eosio",
        voters_table: str = "voters",
        timeout: float = RPC_TIMEOUT,
    ) -> None:
        self.http = http
        self.contract = contract
        self.voters_table = voters_table
        self.timeout = timeout

    @classmethod
    def from_config(cls, http: httpx.AsyncClient, cfg: dict) -> "LedgerClient":
        chain = cfg["chain"]
        return cls(
            http,
            contract=chain.get("contract", "eosio"),
            voters_table=chain.get("voters_table", "voters"),
            timeout=float(cfg.get("timeout", {}).get("rpc", RPC_TIMEOUT)),
        )

    async def get_voter(self, endpoint: str, account: str) -> dict | None:
        """Return the account's row from the voters table, or None if it never voted.

        Raises:
            LedgerError: transport failure, HTTP error status or undecodable body.
        """
        payload = {
            "code": self.contract,
            "scope": self.contract,
            "table": self.voters_table,
            "lower_bound": account,
            "upper_bound": account,
            "limit": 1,
            "json": True,
        }
        url = base_url(endpoint) + GET_TABLE_ROWS
        try:
            r = await self.http.post(url, json=payload, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LedgerError(
                f"get_table_rows failed for {account} using {endpoint}: {e.__class__.__name__} {e}",
                stage=Stage.READ,
                endpoint=endpoint,
            ) from e

        rows = body.get("rows") if isinstance(body, dict) else None
        if not isinstance(rows, list):
            raise LedgerError(f"Unexpected get_table_rows response from {endpoint}: {body!r}", stage=Stage.READ, endpoint=endpoint)

        for row in rows:
            if isinstance(row, dict) and row.get("owner") == account:
                return row
        return None

    async def push_actions(self, endpoint: str, actions: Sequence[Action], private_key: str) -> str:
        """Assemble, sign and push one transaction carrying `actions`. Returns its id.

        Transaction context (chain id, reference block, expiration) is fetched
        fresh from `endpoint` every time.

        Raises:
            LedgerError: with the stage that failed.
        """
        return await asyncio.to_thread(self._push, endpoint, list(actions), private_key)

    def _push(self, endpoint: str, actions: list[Action], private_key: str) -> str:
        try:
            net = pyntelope.Net(host=base_url(endpoint))
            trx = pyntelope.Transaction(actions=[to_pyntelope(a) for a in actions])
        except Exception as e:
            raise LedgerError(f"Error building transaction for {endpoint}: {e}", stage=Stage.CONTEXT, endpoint=endpoint) from e

        # Net opens its own httpx.Client on enter and closes it on exit
        with net:
            try:
                linked = trx.link(net=net)
            except Exception as e:
                raise LedgerError(f"Error filling tx opts using {endpoint}: {e}", stage=Stage.CONTEXT, endpoint=endpoint) from e

            try:
                signed = linked.sign(key=private_key)
            except Exception as e:
                raise LedgerError(f"Error signing transaction: {e}", stage=Stage.SIGN, endpoint=endpoint) from e

            try:
                resp = signed.send()
            except Exception as e:
                raise LedgerError(f"Error sending transaction using {endpoint}: {e}", stage=Stage.SEND, endpoint=endpoint) from e

        txid = resp.get("transaction_id") if isinstance(resp, dict) else None
        if not txid:
            err = resp.get("error", resp) if isinstance(resp, dict) else resp
            raise LedgerError(f"Transaction rejected by {endpoint}: {err}", stage=Stage.SEND, endpoint=endpoint)
        return txid
