"""Table operation endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from api.identity import get_caller
from api.limits import limiter, operation_limit
from api.messages import render_message
from api.operations import Operation, execute
from api.schemas import ActionResponse, StartGameRequest
from api.store import StateStore, get_state_store

router = APIRouter()

Caller = Annotated[str, Depends(get_caller)]
Store = Annotated[StateStore, Depends(get_state_store)]


async def _run(
    store: StateStore,
    account: str,
    operation: Operation,
    bet_amount: int | None = None,
) -> ActionResponse:
    result = await execute(store, account, operation, bet_amount=bet_amount)
    return ActionResponse.from_result(result, render_message(result))


@router.post("/start")
@limiter.limit(operation_limit)
async def start_game(
    request: Request,
    body: StartGameRequest,
    account: Caller,
    store: Store,
) -> ActionResponse:
    """Place a bet and deal a new game."""
    return await _run(store, account, Operation.START_GAME, bet_amount=body.bet_amount)


@router.post("/hit")
@limiter.limit(operation_limit)
async def hit(request: Request, account: Caller, store: Store) -> ActionResponse:
    """Draw one more card."""
    return await _run(store, account, Operation.HIT)


@router.post("/stay")
@limiter.limit(operation_limit)
async def stay(request: Request, account: Caller, store: Store) -> ActionResponse:
    """End the turn; the dealer plays and the game is settled."""
    return await _run(store, account, Operation.STAY)
