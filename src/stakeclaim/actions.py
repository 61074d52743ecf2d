from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, Dict

from stakeclaim import logger
from stakeclaim.models import Account, Action, Authorization, EligibilityRecord


class ActionKind(StrEnum):
    CLAIM = "claim"
    REVOTE = "revote"


@dataclass(frozen=True)
class ActionContext:
    contract: str = "eosio"
    claim_action: str = "claimgbmvote"
    vote_action: str = "voteproducer"

    @classmethod
    def from_config(cls, chain: dict) -> "ActionContext":
        return cls(
            contract=chain.get("contract", cls.contract),
            claim_action=chain.get("claim_action", cls.claim_action),
            vote_action=chain.get("vote_action", cls.vote_action),
        )


Builder = Callable[[ActionContext, Account], Action]

REGISTRY: Dict[ActionKind, Builder] = {}


def register_action(kind: ActionKind):
    """
    Decorator to register an action builder for a kind of action.
    """
    def wrap(fn: Builder):
        REGISTRY[kind] = fn
        return fn
    return wrap


def _authorization(account: Account) -> tuple[Authorization, ...]:
    return (Authorization(actor=account.address, permission=account.permission),)


@register_action(ActionKind.REVOTE)
def build_revote(ctx: ActionContext, account: Account) -> Action:
    data: dict[str, Any] = {
        "voter": account.address,
        "proxy": account.proxy,
        "producers": [],
    }
    return Action(account=ctx.contract, name=ctx.vote_action, authorization=_authorization(account), data=data)


@register_action(ActionKind.CLAIM)
def build_claim(ctx: ActionContext, account: Account) -> Action:
    return Action(
        account=ctx.contract,
        name=ctx.claim_action,
        authorization=_authorization(account),
        data={"owner": account.address},
    )


def action_kinds(record: EligibilityRecord) -> list[ActionKind]:
    """Claim first, but only once the account has voteshare to claim; always revote."""
    if record.has_share_state:
        return [ActionKind.CLAIM, ActionKind.REVOTE]
    return [ActionKind.REVOTE]


def build_actions(ctx: ActionContext, account: Account, record: EligibilityRecord) -> list[Action]:
    actions = [REGISTRY[kind](ctx, account) for kind in action_kinds(record)]
    logger.debug("%s actions: %s", account.address, ", ".join(str(a) for a in actions))
    return actions
