"""
Position: immutable game state with a pure move transition.

- A Position is the starting FEN plus the UCI moves played from it; the
  python-chess Board is rebuilt from that, so repetition draws see the full game.
- The cached board is shared by every thread reading the Position and is never
  mutated. Board.san() and is_repetition() push/pop internally, so they run on
  a copy from board().
- push() returns a new Position and the MoveRecord of the move, or raises
  IllegalMoveError. The receiver is never modified.
- Exposes check/checkmate/draw predicates, a status line, a termination reason
  and PGN export for the surfaces.
"""
from __future__ import annotations

import datetime
from dataclasses import dataclass
from functools import cached_property
from typing import Optional

import chess
import chess.pgn

from .move_validator import IllegalMoveError, MoveSpec, legal_destinations, resolve_move
from .pieces import Color, Piece, PieceType


@dataclass(frozen=True)
class MoveRecord:
    uci: str
    san: str
    from_square: str
    to_square: str
    piece: Piece
    captured: Optional[Piece] = None
    promotion: Optional[PieceType] = None

    def to_dict(self) -> dict:
        return {
            "uci": self.uci,
            "san": self.san,
            "from": self.from_square,
            "to": self.to_square,
            "piece": self.piece.to_dict(),
            "captured": self.captured.to_dict() if self.captured else None,
            "promotion": self.promotion.value if self.promotion else None,
        }


def _record_for(board: chess.Board, mv: chess.Move) -> MoveRecord:
    """Describe mv as played from board (board must not have pushed it yet)."""
    mover = board.piece_at(mv.from_square)
    captured = None
    if board.is_en_passant(mv):
        captured = Piece(PieceType.PAWN, Color.from_chess(not board.turn))
    else:
        target = board.piece_at(mv.to_square)
        if target is not None and target.color != board.turn:
            captured = Piece.from_chess(target)
    return MoveRecord(
        uci=mv.uci(),
        san=board.san(mv),
        from_square=chess.square_name(mv.from_square),
        to_square=chess.square_name(mv.to_square),
        piece=Piece.from_chess(mover),
        captured=captured,
        promotion=PieceType.from_chess(mv.promotion) if mv.promotion else None,
    )


@dataclass(frozen=True)
class Position:
    start_fen: str = chess.STARTING_FEN
    moves: tuple[str, ...] = ()

    @classmethod
    def initial(cls) -> "Position":
        return cls()

    @cached_property
    def _board(self) -> chess.Board:
        board = chess.Board(fen=self.start_fen)
        for uci in self.moves:
            board.push_uci(uci)
        return board

    def board(self) -> chess.Board:
        """A private copy of the rules-engine board; mutating it does not affect the Position."""
        return self._board.copy()

    # ---------------- Queries -----------------
    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def turn(self) -> Color:
        return Color.from_chess(self._board.turn)

    def piece_at(self, square: str) -> Optional[Piece]:
        piece = self._board.piece_at(chess.parse_square(square))
        return Piece.from_chess(piece) if piece else None

    def destinations_from(self, square: str) -> list[str]:
        return legal_destinations(self._board, chess.parse_square(square))

    def legal_moves(self) -> list[str]:
        """Legal moves for the side to move, in SAN."""
        board = self.board()
        return [board.san(mv) for mv in list(board.legal_moves)]

    def is_check(self) -> bool:
        return self._board.is_check()

    def is_checkmate(self) -> bool:
        return self._board.is_checkmate()

    def is_draw(self) -> bool:
        b = self.board()
        return (
            b.is_stalemate()
            or b.is_insufficient_material()
            or b.is_fifty_moves()
            or b.is_repetition(3)
        )

    def is_game_over(self) -> bool:
        return self.is_checkmate() or self.is_draw()

    def san_history(self) -> list[str]:
        replay = chess.Board(fen=self.start_fen)
        sans: list[str] = []
        for mv in self._board.move_stack:
            sans.append(replay.san(mv))
            replay.push(mv)
        return sans

    def last_move_squares(self) -> tuple[str, ...]:
        if not self._board.move_stack:
            return ()
        mv = self._board.peek()
        return chess.square_name(mv.from_square), chess.square_name(mv.to_square)

    # ---------------- Transitions -----------------
    def push(self, spec: MoveSpec) -> tuple["Position", MoveRecord]:
        if self.is_game_over():
            raise IllegalMoveError("game_over", spec)
        board = self.board()
        mv = resolve_move(board, spec)
        record = _record_for(board, mv)
        return Position(self.start_fen, self.moves + (mv.uci(),)), record

    def pop(self) -> "Position":
        """The Position before the last move (replayed from the start); self when nothing was played."""
        if not self.moves:
            return self
        return Position(self.start_fen, self.moves[:-1])

    # ---------------- Status / export -----------------
    def status_text(self) -> str:
        if self.is_checkmate():
            return f"Checkmate! {self.turn.opposite.label} wins!"
        if self.is_draw():
            return "Draw!"
        if self.is_check():
            return "Check!"
        return f"{self.turn.label}'s turn"

    def termination_reason(self) -> Optional[str]:
        b = self.board()
        if b.is_checkmate():
            return "checkmate"
        if b.is_stalemate():
            return "stalemate"
        if b.is_insufficient_material():
            return "insufficient_material"
        if b.is_seventyfive_moves():
            return "seventyfive_move_rule"
        if b.is_fivefold_repetition():
            return "fivefold_repetition"
        if b.is_fifty_moves():
            return "fifty_move_rule"
        if b.is_repetition(3):
            return "threefold_repetition"
        return None

    def result(self) -> str:
        if self.is_checkmate():
            return "0-1" if self.turn is Color.WHITE else "1-0"
        if self.is_draw():
            return "1/2-1/2"
        return "*"

    def pgn(self, white: str = "?", black: str = "?", event: str = "Grandmaster Chess") -> str:
        game = chess.pgn.Game()
        game.headers["Event"] = event
        game.headers["Date"] = datetime.date.today().strftime("%Y.%m.%d")
        game.headers["White"] = white
        game.headers["Black"] = black
        game.headers["Result"] = self.result()
        if self.start_fen != chess.STARTING_FEN:
            game.setup(chess.Board(fen=self.start_fen))
        node = game
        for mv in self._board.move_stack:
            node = node.add_variation(mv)
        reason = self.termination_reason()
        if reason:
            game.comment = f"Termination: {reason}"
        exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=bool(reason))
        return game.accept(exporter)


__all__ = ["IllegalMoveError", "MoveRecord", "Position"]
