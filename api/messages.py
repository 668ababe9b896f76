"""Render typed table results as human-readable status strings."""

from core.game import ActionKind, ActionResult, RejectReason
from core.hand import calculate_hand_value
from core.resolver import Outcome, Resolution


def _render_rejection(result: ActionResult) -> str:
    if result.reason == RejectReason.ACTIVE_GAME:
        return "You already have an active game. Finish it first."
    if result.reason == RejectReason.INSUFFICIENT_BALANCE:
        return (
            f"Insufficient balance. You have {result.balance} "
            f"but tried to bet {result.bet_amount}"
        )
    if result.reason == RejectReason.NO_GAME:
        return "No active game. Start a new game first."
    return "Game is not active or you already stayed."


def _render_resolution(resolution: Resolution, dealer_hand: list[int]) -> str:
    p = resolution.player_value
    d = resolution.dealer_value
    bet = resolution.bet_amount
    tail = f"Player: {p}, Dealer: {dealer_hand} ({d})"

    if resolution.outcome == Outcome.BUST:
        return f"BUST! You lost {bet} chips. {tail}"
    if resolution.outcome == Outcome.DEALER_BUST:
        return f"Dealer BUST! You won {bet} chips! {tail}"
    if resolution.outcome == Outcome.WIN:
        return f"YOU WIN! Won {bet} chips! {tail}"
    if resolution.outcome == Outcome.LOSS:
        return f"Dealer wins. You lost {bet} chips. {tail}"
    return f"PUSH (tie). Bet returned. {tail}"


def render_message(result: ActionResult) -> str:
    """Status string for an operation result."""
    if result.kind == ActionKind.REJECTED:
        return _render_rejection(result)

    game = result.game
    if result.kind == ActionKind.RESOLVED:
        return _render_resolution(result.resolution, game.dealer_hand)

    player_value = calculate_hand_value(game.player_hand)
    if result.kind == ActionKind.STARTED:
        return (
            f"Game started! Your cards: {game.player_hand}, value: {player_value}. "
            f"Dealer shows: {game.dealer_hand}"
        )
    return f"Drew card. Your hand: {game.player_hand}, value: {player_value}"
