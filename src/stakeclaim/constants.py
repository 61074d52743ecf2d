from datetime import datetime, timezone
from enum import StrEnum
from typing import Final

# Time point the chain reports for accounts that never claimed / never voted
EPOCH: Final = datetime(1970, 1, 1, tzinfo=timezone.utc)

COMMENT_PREFIX: Final = "#"
FIELD_SEPARATOR: Final = ":"
ACCOUNT_FIELDS: Final = 4

DEFAULT_ACCOUNTS_FILE = "./config.txt"

# Legacy WIF keys: version byte + 32 byte secret
WIF_VERSION: Final = 0x80
K1_PRIVATE_PREFIX: Final = "PVT_K1_"
SECRET_LENGTH: Final = 32


class CycleState(StrEnum):
    CHECK_ELIGIBILITY = "CHECK_ELIGIBILITY"
    WAITING           = "WAITING"
    SUBMITTING        = "SUBMITTING"
    COOLDOWN          = "COOLDOWN"


class Stage(StrEnum):
    READ    = "read"
    CONTEXT = "context"
    SIGN    = "sign"
    SEND    = "send"


__all__ = [
    "ACCOUNT_FIELDS",
    "COMMENT_PREFIX",
    "DEFAULT_ACCOUNTS_FILE",
    "EPOCH",
    "FIELD_SEPARATOR",
    "K1_PRIVATE_PREFIX",
    "SECRET_LENGTH",
    "WIF_VERSION",

    ######
    "CycleState",
    "Stage",
]
