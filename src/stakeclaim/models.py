"""Domain data structures: configured accounts, cached eligibility and actions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from stakeclaim.constants import EPOCH


@dataclass(frozen=True, slots=True)
class Account:
    address: str
    permission: str
    private_key: str = field(repr=False)
    proxy: str

    def __str__(self):
        return f"{self.address}@{self.permission}"


def parse_time_point(value: Any) -> datetime:
    """Parse a chain time point into an aware UTC datetime.

    Accepts the JSON form nodes return ("2024-05-01T12:00:00.000"), or an integer
    count of microseconds since the epoch. Empty values map to EPOCH.
    """
    if value in (None, "", 0):
        return EPOCH
    if isinstance(value, int):
        return EPOCH + timedelta(microseconds=value)
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class EligibilityRecord:
    """Last known claim state of an account, as read from the voters table.

    An account that never voted has no row; both timestamps are then EPOCH.
    """

    last_claim: datetime = EPOCH
    last_share_update: datetime = EPOCH

    @property
    def has_share_state(self) -> bool:
        # Claiming before the voteshare was ever initialized is rejected by the contract
        return self.last_share_update > EPOCH

    @classmethod
    def from_voter_row(cls, row: dict | None) -> "EligibilityRecord":
        """Build a record from a `voters` table row (None for an empty result).

        Raises:
            ValueError: a timestamp field cannot be parsed.
        """
        if not row:
            return cls()
        return cls(
            last_claim=parse_time_point(row.get("last_claim_time")),
            last_share_update=parse_time_point(row.get("unpaid_voteshare_last_updated")),
        )


@dataclass(frozen=True, slots=True)
class Authorization:
    actor: str
    permission: str


@dataclass(frozen=True, slots=True)
class Action:
    account: str  # contract
    name: str
    authorization: tuple[Authorization, ...]
    data: dict[str, Any]

    def __str__(self):
        return f"{self.account}::{self.name}"
