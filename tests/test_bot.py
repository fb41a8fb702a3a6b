"""Tests for the Telegram presenter, using mocked updates."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import BadRequest

import bot
from config import Settings
from engine import Cell
from game import GameState, Mode
from session import GameSession


def make_context(session=None, delay=0):
    context = MagicMock()
    context.chat_data = {}
    if session is not None:
        context.chat_data[bot.SESSION_KEY] = session
    context.bot_data = {bot.AI_DELAY_KEY: delay}
    return context


def make_callback(data):
    query = MagicMock()
    query.data = data
    query.answer = AsyncMock()
    query.edit_message_text = AsyncMock()
    update = MagicMock()
    update.callback_query = query
    return update, query


def callbacks(markup):
    return [[button.callback_data for button in row] for row in markup.inline_keyboard]


def started(mode):
    session = GameSession()
    session.mode_selected(mode)
    return session


# ─── Rendering ───


def test_status_text():
    assert "Select a mode to start" in bot.status_text(None)

    state = GameState()
    assert bot.status_text(state.snapshot()).endswith("Current turn: ❌")
    for index in (0, 3, 1, 4, 2):
        state.apply_move(index)
    assert bot.status_text(state.snapshot()) == "🏆 Winner: ❌"


def test_status_text_draw():
    state = GameState()
    for index in (0, 1, 2, 4, 3, 5, 7, 6, 8):
        state.apply_move(index)
    assert bot.status_text(state.snapshot()) == "🤝 Draw!"


def test_keyboard_before_mode_only_offers_modes():
    assert callbacks(bot.build_board_keyboard(None)) == [["mode_pvp", "mode_ai"]]


def test_keyboard_during_game():
    state = GameState(mode=Mode.PVP)
    state.apply_move(4)
    rows = callbacks(bot.build_board_keyboard(state.snapshot()))

    assert rows[0] == ["cell_0", "cell_1", "cell_2"]
    assert rows[1] == ["cell_3", "noop_4", "cell_5"]
    assert rows[3] == ["noop", "mode_ai"]
    assert rows[4] == ["restart"]


def test_cells_locked_while_bot_is_to_move():
    state = GameState(mode=Mode.PVAI)
    seen = []
    state.subscribe(seen.append)
    state.apply_move(0)

    thinking = seen[0]
    assert thinking.current_turn is Cell.O
    assert not any(bot.cell_enabled(thinking, i) for i in range(9))
    assert bot.cell_enabled(seen[1], 1)


def test_winning_line_is_highlighted_and_board_locked():
    state = GameState()
    for index in (0, 3, 1, 4, 2):
        state.apply_move(index)
    markup = bot.build_board_keyboard(state.snapshot())
    top = markup.inline_keyboard[0]

    assert all("✨" in button.text for button in top)
    assert "✨" not in markup.inline_keyboard[1][0].text
    assert all(data.startswith("noop") for row in callbacks(markup)[:3] for data in row)


# ─── Handlers ───


@pytest.mark.asyncio
async def test_command_opens_a_session():
    update = MagicMock()
    update.message.reply_text = AsyncMock()
    context = make_context()

    await bot.tictactoe_command(update, context)

    assert isinstance(context.chat_data[bot.SESSION_KEY], GameSession)
    text = update.message.reply_text.call_args.args[0]
    assert "Select a mode to start" in text


@pytest.mark.asyncio
async def test_callback_without_session_alerts():
    update, query = make_callback("cell_0")
    await bot.callback_handler(update, make_context())

    query.answer.assert_awaited_once()
    assert query.answer.call_args.kwargs["show_alert"] is True
    query.edit_message_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_mode_button_starts_game():
    update, query = make_callback("mode_ai")
    context = make_context(GameSession())

    await bot.callback_handler(update, context)

    session = context.chat_data[bot.SESSION_KEY]
    assert session.snapshot.mode is Mode.PVAI
    query.answer.assert_awaited_once_with()
    assert query.edit_message_text.call_args.args[0].endswith("Current turn: ❌")


@pytest.mark.asyncio
async def test_move_against_bot_renders_both_steps():
    update, query = make_callback("cell_0")
    session = started(Mode.PVAI)

    await bot.callback_handler(update, make_context(session))

    assert query.edit_message_text.await_count == 2
    first, last = query.edit_message_text.call_args_list
    assert first.args[0].endswith("Current turn: ⭕")
    assert last.args[0].endswith("Current turn: ❌")
    assert session.snapshot.board[4] is Cell.O


@pytest.mark.asyncio
async def test_bot_reply_waits_for_configured_delay(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr(bot.asyncio, "sleep", sleep)
    update, _ = make_callback("cell_0")

    await bot.callback_handler(update, make_context(started(Mode.PVAI), delay=0.5))

    sleep.assert_awaited_once_with(0.5)


@pytest.mark.asyncio
async def test_pvp_move_renders_once():
    update, query = make_callback("cell_4")
    session = started(Mode.PVP)

    await bot.callback_handler(update, make_context(session))

    query.edit_message_text.assert_awaited_once()
    assert session.snapshot.board[4] is Cell.X


@pytest.mark.asyncio
async def test_rejected_move_alerts_without_render():
    session = started(Mode.PVP)
    session.cell_clicked(4)
    update, query = make_callback("cell_4")

    await bot.callback_handler(update, make_context(session))

    query.answer.assert_awaited_once_with("Invalid move!", show_alert=True)
    query.edit_message_text.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("data", ["cell_x", "mode_chess", "bogus"])
async def test_malformed_callback_data_is_rejected(data):
    update, query = make_callback(data)
    await bot.callback_handler(update, make_context(started(Mode.PVP)))

    query.answer.assert_awaited_once_with("Invalid move!", show_alert=True)


@pytest.mark.asyncio
async def test_noop_button_just_acknowledges():
    update, query = make_callback("noop_4")
    await bot.callback_handler(update, make_context(started(Mode.PVP)))

    query.answer.assert_awaited_once_with()
    query.edit_message_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_restart_of_fresh_board_ignores_not_modified():
    update, query = make_callback("restart")
    query.edit_message_text.side_effect = BadRequest("Message is not modified")

    await bot.callback_handler(update, make_context(started(Mode.PVP)))

    query.edit_message_text.assert_awaited_once()


@pytest.mark.asyncio
async def test_other_telegram_errors_propagate():
    update, query = make_callback("restart")
    query.edit_message_text.side_effect = BadRequest("Chat not found")

    with pytest.raises(BadRequest):
        await bot.callback_handler(update, make_context(started(Mode.PVP)))


# ─── Main ───


def test_main_without_token_does_not_start(monkeypatch, caplog):
    monkeypatch.setattr(bot, "load_settings", lambda: Settings(bot_token=None))
    application = MagicMock()
    monkeypatch.setattr(bot, "Application", application)

    bot.main()

    application.builder.assert_not_called()
    assert "BOT_TOKEN not found" in caplog.text


def test_main_registers_handlers(monkeypatch):
    monkeypatch.setattr(bot, "load_settings", lambda: Settings(bot_token="123:abc", ai_delay=0.1))
    application = MagicMock()
    monkeypatch.setattr(bot, "Application", application)

    bot.main()

    app = application.builder.return_value.token.return_value.build.return_value
    assert app.add_handler.call_count == 2
    app.bot_data.__setitem__.assert_called_once_with(bot.AI_DELAY_KEY, 0.1)
    app.run_polling.assert_called_once()
