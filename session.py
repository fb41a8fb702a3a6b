"""Intent interface between a presenter and the game core."""

from __future__ import annotations

import logging
from typing import List, Optional

from game import GameState, IllegalMove, Listener, Mode, Snapshot

logger = logging.getLogger(__name__)


class GameSession:
    """
    Owns the GameState of one session and turns presenter intents into
    state transitions.

    Before a mode is selected there is no game: ``snapshot`` is None, cell
    clicks and restarts are ignored. Every reset and every applied move
    (including the AI reply) is forwarded to ``on_state_changed`` listeners.
    """

    def __init__(self) -> None:
        self.state: Optional[GameState] = None
        self._listeners: List[Listener] = []

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self.state.snapshot() if self.state else None

    def on_state_changed(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, snapshot: Snapshot) -> None:
        for listener in list(self._listeners):
            listener(snapshot)

    # ─── Intents ───

    def mode_selected(self, mode: Mode) -> bool:
        """Start a new game in ``mode``."""
        if self.state is None:
            self.state = GameState(mode=mode)
            self.state.subscribe(self._emit)
        logger.info("Mode selected: %s", mode.value)
        self.state.reset(mode)
        return True

    def restart_requested(self) -> bool:
        """Restart in the current mode; a no-op until a mode is chosen."""
        if self.state is None:
            logger.debug("Restart ignored: no mode selected")
            return False
        self.state.reset()
        return True

    def cell_clicked(self, index: int) -> bool:
        """Play ``index`` for the player to move. Returns False if rejected."""
        if self.state is None:
            logger.debug("Click on %s ignored: no mode selected", index)
            return False
        try:
            self.state.apply_move(index)
        except IllegalMove as exc:
            logger.info("Rejected move %r: %s", index, exc)
            return False
        return True
