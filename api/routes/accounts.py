"""Read-only query endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.schemas import BalanceResponse, GameView
from api.store import StateStore, get_state_store

router = APIRouter()

Store = Annotated[StateStore, Depends(get_state_store)]


@router.get("/{account}/balance")
async def get_balance(account: str, store: Store) -> BalanceResponse:
    """Balance of an account, or the starting balance if it never played."""
    return BalanceResponse(account=account, balance=await store.get_balance(account))


@router.get("/{account}/game")
async def get_game(account: str, store: Store) -> GameView | None:
    """
    Current or most recent game of an account.

    The dealer's hole card is withheld while the player can still act.
    """
    game = await store.get_game(account)
    if game is None:
        return None
    return GameView.from_record(game)
