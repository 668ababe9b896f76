"""Serialized unit of work: load, play, commit."""

import logging
from enum import Enum

from api.store import StateStore
from config import config
from core.deck import Sequencer
from core.game import ActionResult, BlackjackTable

logger = logging.getLogger("blackjack.operations")


class Operation(Enum):
    """State-mutating table operations."""

    START_GAME = "start_game"
    HIT = "hit"
    STAY = "stay"


async def execute(
    store: StateStore,
    account: str,
    operation: Operation,
    bet_amount: int | None = None,
) -> ActionResult:
    """
    Run one operation for `account` as a single indivisible step.

    The store's unit of work is held from the first read to the commit, so
    no other operation (from any account, or any process sharing the
    store) can observe or consume the deck seed in between. The commit is
    also refused if the seed moved anyway. Rejections commit nothing.
    Store errors propagate unchanged.
    """
    if operation is Operation.START_GAME and bet_amount is None:
        raise ValueError("start_game requires a bet amount")

    async with store.unit_of_work():
        balance = await store.get_balance(account)
        game = await store.get_game(account)
        dealt_from = await store.get_seed()
        sequencer = Sequencer(dealt_from)

        table = BlackjackTable(
            account,
            balance,
            game,
            sequencer,
            dealer_stands_on=config.game.dealer_stands_on,
        )

        if operation is Operation.START_GAME:
            result = table.start_game(bet_amount)
        elif operation is Operation.HIT:
            result = table.hit()
        else:
            result = table.stay()

        if result.mutates:
            await store.commit(
                account,
                result.balance,
                result.game,
                sequencer.seed,
                expected_seed=dealt_from,
            )
            logger.debug(
                "Committed %s for %s (%d draws, seed now %d)",
                operation.value,
                account,
                sequencer.draws,
                sequencer.seed,
            )

    return result
