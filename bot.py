"""Telegram Tic-Tac-Toe Bot."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from config import DEFAULT_AI_DELAY, load_settings
from engine import Cell
from game import SYMBOLS, Mode, Phase, Snapshot
from session import GameSession

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

SESSION_KEY = "session"
AI_DELAY_KEY = "ai_delay"

MODE_LABELS = {
    Mode.PVP: "👥 Player vs Player",
    Mode.PVAI: "🤖 Player vs Bot",
}


# ─── Helpers ────────────────────────────────────────────────


def cell_enabled(snapshot: Snapshot, index: int) -> bool:
    """A cell is clickable only if free, the game is on and a human is to move."""
    if not snapshot.active or snapshot.board[index] is not Cell.EMPTY:
        return False
    return not (snapshot.mode is Mode.PVAI and snapshot.current_turn is Cell.O)


def cell_text(snapshot: Snapshot, index: int) -> str:
    text = SYMBOLS[snapshot.board[index]]
    if snapshot.winning_line and index in snapshot.winning_line:
        return f"✨{text}✨"
    return text


def build_board_keyboard(snapshot: Optional[Snapshot]) -> InlineKeyboardMarkup:
    """Build the 3x3 board (once a mode is chosen) plus the control row."""
    keyboard = []
    if snapshot is not None:
        for row in range(3):
            row_buttons = []
            for col in range(3):
                index = row * 3 + col
                # Disabled cells get a no-op callback
                prefix = "cell" if cell_enabled(snapshot, index) else "noop"
                row_buttons.append(
                    InlineKeyboardButton(cell_text(snapshot, index), callback_data=f"{prefix}_{index}")
                )
            keyboard.append(row_buttons)

    controls = []
    for mode, label in MODE_LABELS.items():
        if snapshot is not None and snapshot.mode is mode:
            controls.append(InlineKeyboardButton(f"• {label}", callback_data="noop"))
        else:
            controls.append(InlineKeyboardButton(label, callback_data=f"mode_{mode.value}"))
    keyboard.append(controls)
    if snapshot is not None:
        keyboard.append([InlineKeyboardButton("🔄 Restart", callback_data="restart")])
    return InlineKeyboardMarkup(keyboard)


def status_text(snapshot: Optional[Snapshot]) -> str:
    """Generate the status text shown above the board."""
    if snapshot is None:
        return "Tic-Tac-Toe\n\nSelect a mode to start"
    if snapshot.phase is Phase.WON:
        return f"🏆 Winner: {SYMBOLS[snapshot.winner]}"
    if snapshot.phase is Phase.DRAW:
        return "🤝 Draw!"
    return f"Tic-Tac-Toe\n\nCurrent turn: {SYMBOLS[snapshot.current_turn]}"


def get_session(context: ContextTypes.DEFAULT_TYPE) -> Optional[GameSession]:
    return context.chat_data.get(SESSION_KEY)


async def render(query, snapshot: Optional[Snapshot]) -> None:
    """Redraw the game message, ignoring edits that change nothing."""
    try:
        await query.edit_message_text(status_text(snapshot), reply_markup=build_board_keyboard(snapshot))
    except BadRequest as exc:
        if "not modified" not in str(exc).lower():
            raise
        logger.debug("Skipped re-render: %s", exc)


# ─── Command Handler ────────────────────────────────────────


async def tictactoe_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tictactoe (and /start) - open a new session in this chat."""
    session = GameSession()
    context.chat_data[SESSION_KEY] = session
    logger.info("New session in chat %s", update.effective_chat.id)

    await update.message.reply_text(status_text(None), reply_markup=build_board_keyboard(None))


# ─── Callback Query Handler ─────────────────────────────────


async def callback_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle all inline keyboard button presses."""
    query = update.callback_query
    data = query.data or ""

    session = get_session(context)
    if session is None:
        await query.answer("No active game. Use /tictactoe to start one.", show_alert=True)
        return

    # ── No-op buttons (taken cells, game over, active mode) ──
    if data == "noop" or data.startswith("noop_"):
        await query.answer()
        return

    snapshots: List[Snapshot] = []
    record = snapshots.append
    session.on_state_changed(record)
    try:
        if data == "restart":
            accepted = session.restart_requested()
        elif data.startswith("mode_"):
            try:
                mode = Mode(data[len("mode_"):])
            except ValueError:
                logger.warning("Unknown mode in callback data %r", data)
                accepted = False
            else:
                accepted = session.mode_selected(mode)
        elif data.startswith("cell_"):
            try:
                index = int(data[len("cell_"):])
            except ValueError:
                logger.warning("Malformed cell in callback data %r", data)
                accepted = False
            else:
                accepted = session.cell_clicked(index)
        else:
            logger.warning("Unknown callback data %r", data)
            accepted = False
    finally:
        session.remove_listener(record)

    if not accepted:
        await query.answer("Invalid move!", show_alert=True)
        return

    await query.answer()

    # The bot's reply arrives in the same transition; show the human move
    # first and the reply after a short pause.
    delay = context.bot_data.get(AI_DELAY_KEY, DEFAULT_AI_DELAY)
    for snapshot in snapshots[:-1]:
        await render(query, snapshot)
        if delay > 0:
            await asyncio.sleep(delay)
    await render(query, snapshots[-1] if snapshots else session.snapshot)


# ─── Main ───────────────────────────────────────────────────


def main() -> None:
    """Start the bot."""
    settings = load_settings()
    logging.getLogger().setLevel(settings.log_level)

    if not settings.bot_token:
        logger.error("BOT_TOKEN not found! Set it in .env file.")
        return

    app = Application.builder().token(settings.bot_token).build()
    app.bot_data[AI_DELAY_KEY] = settings.ai_delay

    # Register handlers
    app.add_handler(CommandHandler(["tictactoe", "start"], tictactoe_command))
    app.add_handler(CallbackQueryHandler(callback_handler))

    logger.info("Bot is starting...")
    app.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
