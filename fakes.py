"""In-memory stand-ins for the remote ledger, shared by the test modules."""

from datetime import datetime, timezone

from stakeclaim.models import Account

# Well known eosio development key
DEV_KEY = "5KQwrPbwdL6PhXujxW37FSSQZ1JiwsST4cqQzDeyXtP79zkvFD3"

NOW = datetime(2026, 1, 2, 12, 0, 0, tzinfo=timezone.utc)


def make_account(address: str = "alice.wam", proxy: str = "proxy4nation") -> Account:
    return Account(address=address, permission="active", private_key=DEV_KEY, proxy=proxy)


def voter_row(owner: str, last_claim: datetime, last_update: datetime | None = None) -> dict:
    fmt = "%Y-%m-%dT%H:%M:%S.000"
    return {
        "owner": owner,
        "proxy": "proxy4nation",
        "producers": [],
        "staked": 1000000,
        "last_claim_time": last_claim.strftime(fmt),
        "unpaid_voteshare_last_updated": (last_update or last_claim).strftime(fmt),
    }


class FakeLedger:
    def __init__(self, rows=None, *, read_error=None, push_error=None, txid="f00dfeed", on_push=None):
        self.rows = dict(rows or {})
        self.read_error = read_error
        self.push_error = push_error
        self.txid = txid
        self.on_push = on_push
        self.reads = []
        self.pushes = []

    async def get_voter(self, endpoint, account):
        self.reads.append((endpoint, account))
        if self.read_error is not None:
            raise self.read_error
        return self.rows.get(account)

    async def push_actions(self, endpoint, actions, private_key):
        self.pushes.append((endpoint, list(actions), private_key))
        if self.on_push is not None:
            self.on_push()
        if self.push_error is not None:
            raise self.push_error
        return self.txid
