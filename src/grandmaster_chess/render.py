"""Plain-text rendering of a GameController for the terminal front end."""
from __future__ import annotations

from .controller import GameController
from .pieces import Piece

FILES = "abcdefgh"
RANKS = "87654321"
PLACEHOLDER_TEXT = "Make a move or type 'ai' for grandmaster insights."


def _cell(ctrl: GameController, square: str, last_move: tuple[str, ...]) -> str:
    piece = ctrl.position.piece_at(square)
    body = piece.glyph if piece else "·"
    if square == ctrl.selected:
        return f"[{body}]"
    if square in ctrl.valid_moves:
        return f"({body})" if piece else " * "
    if square in last_move:
        return f"'{body}'"
    return f" {body} "


def render_board(ctrl: GameController) -> str:
    """Board with rank 8 on top; [x] selected, * / (x) destinations, 'x' last move."""
    last_move = ctrl.position.last_move_squares()
    lines = []
    for rank in RANKS:
        cells = "".join(_cell(ctrl, f"{f}{rank}", last_move) for f in FILES)
        lines.append(f"{rank} {cells}")
    lines.append("   " + "  ".join(FILES))
    return "\n".join(lines)


def render_history(ctrl: GameController) -> str:
    if not ctrl.history:
        return "No moves yet."
    rows = []
    sans = [r.san for r in ctrl.history]
    for i in range(0, len(sans), 2):
        pair = " ".join(sans[i:i + 2])
        rows.append(f"{i // 2 + 1}. {pair}")
    return "\n".join(rows)


def _pieces(pieces: list[Piece]) -> str:
    return " ".join(p.glyph for p in pieces) or "-"


def render_captured(ctrl: GameController) -> str:
    return f"By White: {_pieces(ctrl.captured_by_white)}\nBy Black: {_pieces(ctrl.captured_by_black)}"


def render_analysis(ctrl: GameController) -> str:
    if ctrl.ai_analysis:
        return f'"{ctrl.ai_analysis}"'
    return PLACEHOLDER_TEXT


def render(ctrl: GameController) -> str:
    parts = [
        ctrl.status_text(),
        render_board(ctrl),
        "History:\n" + render_history(ctrl),
        "Captured:\n" + render_captured(ctrl),
        "AI Analysis: " + render_analysis(ctrl),
    ]
    return "\n\n".join(parts)
