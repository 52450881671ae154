"""
Move parsing/validation helpers for user input and AI replies.

A move spec is either:
- a notation string: SAN (e4, Nf3, O-O, exd8=Q+) or coordinate/UCI (e2e4, e7e8q);
  0-0 style castling is normalized first;
- a mapping {"from": "e2", "to": "e4", "promotion": "q"}; the promotion piece
  is only used when the move is a pawn reaching the last rank.

resolve_move() returns a chess.Move that is legal on the given board or raises
IllegalMoveError carrying a short machine-readable reason.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Union

import chess

UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$", re.I)
CASTLE_ZERO = {"0-0": "O-O", "0-0-0": "O-O-O", "o-o": "O-O", "o-o-o": "O-O-O"}
MOVE_NUMBER_RE = re.compile(r"^\d+\.+$")
PROMOTION_LETTERS = {"q": chess.QUEEN, "r": chess.ROOK, "b": chess.BISHOP, "n": chess.KNIGHT}

MoveSpec = Union[str, Mapping]


class IllegalMoveError(ValueError):
    """Raised when a move spec cannot be parsed or is not legal in the position."""

    def __init__(self, reason: str, spec: object = None):
        super().__init__(f"{reason}: {spec!r}" if spec is not None else reason)
        self.reason = reason
        self.spec = spec


def strip_code_fence(text: str) -> str:
    """Remove simple ``` fences if present."""
    text = text.strip()
    if text.startswith("```") and text.endswith("```"):
        inner = text.split("\n", 1)
        if len(inner) == 2:
            return inner[1].rsplit("\n", 1)[0].strip()
    return text


def _primary_token(text: str) -> str:
    text = strip_code_fence(text).strip()
    tokens = [t for t in text.replace("\n", " ").split() if not MOVE_NUMBER_RE.match(t)]
    return tokens[0] if tokens else ""


def _parse_square(name: object) -> chess.Square:
    if not isinstance(name, str):
        raise IllegalMoveError("bad_square", name)
    try:
        return chess.parse_square(name.strip().lower())
    except ValueError:
        raise IllegalMoveError("bad_square", name) from None


def _is_promotion_move(board: chess.Board, from_sq: chess.Square, to_sq: chess.Square) -> bool:
    piece = board.piece_at(from_sq)
    if piece is None or piece.piece_type != chess.PAWN:
        return False
    last_rank = 7 if piece.color == chess.WHITE else 0
    return chess.square_rank(to_sq) == last_rank


def _resolve_structured(board: chess.Board, spec: Mapping) -> chess.Move:
    from_sq = _parse_square(spec.get("from"))
    to_sq = _parse_square(spec.get("to"))
    promotion = None
    if _is_promotion_move(board, from_sq, to_sq):
        letter = str(spec.get("promotion") or "q").lower()
        if letter not in PROMOTION_LETTERS:
            raise IllegalMoveError("bad_promotion", spec)
        promotion = PROMOTION_LETTERS[letter]
    mv = chess.Move(from_sq, to_sq, promotion=promotion)
    if mv not in board.legal_moves:
        raise IllegalMoveError("illegal_move", spec)
    return mv


def _resolve_notation(board: chess.Board, raw: str) -> chess.Move:
    token = _primary_token(raw)
    if not token:
        raise IllegalMoveError("empty_move", raw)
    token = CASTLE_ZERO.get(token.lower(), token)

    if UCI_RE.fullmatch(token):
        try:
            mv = chess.Move.from_uci(token.lower())
        except ValueError:
            # same-square coordinates such as e2e2
            raise IllegalMoveError("bad_uci", raw) from None
        if mv in board.legal_moves:
            return mv
        raise IllegalMoveError("illegal_move", raw)

    try:
        mv = board.parse_san(token)
    except ValueError:
        raise IllegalMoveError("bad_san", raw) from None
    if mv not in board.legal_moves:
        raise IllegalMoveError("illegal_move", raw)
    return mv


def resolve_move(board: chess.Board, spec: MoveSpec) -> chess.Move:
    """Return the legal chess.Move described by spec on board, or raise IllegalMoveError."""
    if isinstance(spec, str):
        return _resolve_notation(board, spec)
    if isinstance(spec, Mapping):
        return _resolve_structured(board, spec)
    raise IllegalMoveError("bad_move_spec", spec)


def legal_destinations(board: chess.Board, square: chess.Square) -> list[str]:
    """Sorted, de-duplicated destination square names for the piece on square."""
    dests = {chess.square_name(mv.to_square) for mv in board.legal_moves if mv.from_square == square}
    return sorted(dests)


__all__ = [
    "IllegalMoveError",
    "MoveSpec",
    "resolve_move",
    "legal_destinations",
]
