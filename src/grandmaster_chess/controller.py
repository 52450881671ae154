"""
Game session controller: the single owner and writer of game state.

- GameController holds the authoritative Position, the selection, the move
  history and the captured-piece ledgers.
- select_or_move()/apply_move()/undo()/reset() are the user-facing transitions;
  apply_move() is attempt-then-commit, a rejected move leaves everything untouched.
- trigger_ai_move() asks the MoveAdvisor for a move and applies it, falling
  back to a uniformly random legal move when the suggestion is not playable.
  At most one AI request is in flight per controller (the `thinking` flag).
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

import chess

from .advisor import MoveAdvisor
from .config import SETTINGS, Settings
from .move_validator import IllegalMoveError, MoveSpec
from .pieces import Color, Piece
from .position import MoveRecord, Position

ANALYZING_TEXT = "Analyzing board state..."
FALLBACK_TEXT = "AI suggested an illegal move. Fallback logic triggered."
NO_MOVE_TEXT = "AI couldn't find a move."
ERROR_TEXT = "Error communicating with AI."


class GameController:
    def __init__(
        self,
        advisor: Optional[MoveAdvisor] = None,
        rng: Optional[random.Random] = None,
        move_delay_s: Optional[float] = None,
        settings: Settings = SETTINGS,
    ):
        self.log = logging.getLogger("controller")
        self.advisor = advisor or MoveAdvisor(settings=settings)
        self.rng = rng or random.Random()
        self.move_delay_s = settings.ai_move_delay_s if move_delay_s is None else move_delay_s
        self.thinking = False
        self._clear_game()

    def _clear_game(self):
        self.position = Position.initial()
        self.history: list[MoveRecord] = []
        self.selected: Optional[str] = None
        self.valid_moves: list[str] = []
        self.captured_by_white: list[Piece] = []
        self.captured_by_black: list[Piece] = []
        self.ai_analysis: Optional[str] = None

    # ---------------- Queries -----------------
    @property
    def fen(self) -> str:
        return self.position.fen

    def is_game_over(self) -> bool:
        return self.position.is_game_over()

    def status_text(self) -> str:
        return self.position.status_text()

    def can_undo(self) -> bool:
        return bool(self.history)

    # ---------------- Selection / moves -----------------
    def clear_selection(self):
        self.selected = None
        self.valid_moves = []

    def select_or_move(self, square: str) -> bool:
        """Handle a click on square. Returns True when the click completed a move."""
        if self.thinking or self.is_game_over():
            return False
        square = (square or "").strip().lower()
        if square not in chess.SQUARE_NAMES:
            return False

        if self.selected:
            if self.selected == square:
                self.clear_selection()
                return False
            if self.apply_move({"from": self.selected, "to": square, "promotion": "q"}):
                return True

        piece = self.position.piece_at(square)
        if piece and piece.color is self.position.turn:
            self.selected = square
            self.valid_moves = self.position.destinations_from(square)
        else:
            self.clear_selection()
        return False

    def apply_move(self, spec: MoveSpec) -> bool:
        try:
            candidate, record = self.position.push(spec)
        except IllegalMoveError as exc:
            self.log.debug("Rejected move %r: %s", spec, exc.reason)
            return False
        self.position = candidate
        if record.captured:
            ledger = self.captured_by_white if record.piece.color is Color.WHITE else self.captured_by_black
            ledger.append(record.captured)
        self.history.append(record)
        self.clear_selection()
        self.log.info("%s played %s", record.piece.color.label, record.san)
        return True

    def undo(self) -> bool:
        if not self.history:
            return False
        undone = self.history.pop()
        self.position = self.position.pop()
        self.clear_selection()
        self.ai_analysis = None
        self.log.info("Undid %s", undone.san)
        return True

    def reset(self):
        self._clear_game()
        self.log.info("New game")

    # ---------------- AI move -----------------
    async def trigger_ai_move(self) -> bool:
        """Ask the advisor for a move and play it (or a random legal fallback). Returns True if a move was played."""
        if self.thinking or self.is_game_over():
            return False
        self.thinking = True
        self.ai_analysis = ANALYZING_TEXT
        requested = self.position
        try:
            suggestion = await self.advisor.suggest_move(requested.fen, requested.san_history())
            if self.position != requested:
                self.log.info("Game changed while the AI was thinking; discarding suggestion")
                return False
            if not suggestion.move:
                self.ai_analysis = NO_MOVE_TEXT
                return False

            self.ai_analysis = suggestion.explanation
            if self.move_delay_s > 0:
                await asyncio.sleep(self.move_delay_s)
            if self.position != requested:
                self.log.info("Game changed while the AI was thinking; discarding suggestion")
                return False
            if self.apply_move(suggestion.move):
                return True

            self.log.warning("AI suggested illegal move %r; playing a random legal move", suggestion.move)
            self.ai_analysis = FALLBACK_TEXT
            return self._play_random_move()
        except Exception:  # noqa: BLE001
            self.log.exception("AI move request failed")
            self.ai_analysis = ERROR_TEXT
            return False
        finally:
            self.thinking = False

    def _play_random_move(self) -> bool:
        legal = self.position.legal_moves()
        if not legal:
            self.log.warning("No legal moves available for fallback")
            return False
        return self.apply_move(self.rng.choice(legal))

    # ---------------- Export -----------------
    def snapshot(self) -> dict:
        """JSON-ready view of everything a surface needs to render the session."""
        pos = self.position
        return {
            "fen": pos.fen,
            "status": self.status_text(),
            "turn": pos.turn.value,
            "is_check": pos.is_check(),
            "is_checkmate": pos.is_checkmate(),
            "is_draw": pos.is_draw(),
            "game_over": pos.is_game_over(),
            "termination_reason": pos.termination_reason(),
            "selected": self.selected,
            "valid_moves": list(self.valid_moves),
            "history": [r.san for r in self.history],
            "moves": [r.to_dict() for r in self.history],
            "last_move": list(pos.last_move_squares()),
            "captured_by_white": [p.to_dict() for p in self.captured_by_white],
            "captured_by_black": [p.to_dict() for p in self.captured_by_black],
            "ai_analysis": self.ai_analysis,
            "thinking": self.thinking,
            "can_undo": self.can_undo(),
        }
