"""
Piece kinds and colors as a closed enumeration.

Every table below is keyed by the full set of PieceType/Color members so a
lookup can never fall through; python-chess pieces convert into them.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

import chess


class Color(enum.Enum):
    WHITE = "w"
    BLACK = "b"

    @property
    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def label(self) -> str:
        return "White" if self is Color.WHITE else "Black"

    @classmethod
    def from_chess(cls, color: chess.Color) -> "Color":
        return cls.WHITE if color == chess.WHITE else cls.BLACK


class PieceType(enum.Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"

    @classmethod
    def from_chess(cls, piece_type: chess.PieceType) -> "PieceType":
        return _FROM_CHESS[piece_type]


_FROM_CHESS = {
    chess.PAWN: PieceType.PAWN,
    chess.KNIGHT: PieceType.KNIGHT,
    chess.BISHOP: PieceType.BISHOP,
    chess.ROOK: PieceType.ROOK,
    chess.QUEEN: PieceType.QUEEN,
    chess.KING: PieceType.KING,
}

_GLYPHS = {
    (PieceType.PAWN, Color.WHITE): "♙",
    (PieceType.KNIGHT, Color.WHITE): "♘",
    (PieceType.BISHOP, Color.WHITE): "♗",
    (PieceType.ROOK, Color.WHITE): "♖",
    (PieceType.QUEEN, Color.WHITE): "♕",
    (PieceType.KING, Color.WHITE): "♔",
    (PieceType.PAWN, Color.BLACK): "♟",
    (PieceType.KNIGHT, Color.BLACK): "♞",
    (PieceType.BISHOP, Color.BLACK): "♝",
    (PieceType.ROOK, Color.BLACK): "♜",
    (PieceType.QUEEN, Color.BLACK): "♛",
    (PieceType.KING, Color.BLACK): "♚",
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_chess(cls, piece: chess.Piece) -> "Piece":
        return cls(PieceType.from_chess(piece.piece_type), Color.from_chess(piece.color))

    @property
    def glyph(self) -> str:
        return _GLYPHS[(self.type, self.color)]

    def to_dict(self) -> dict:
        return {"type": self.type.value, "color": self.color.value}
