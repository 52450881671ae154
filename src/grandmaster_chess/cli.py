"""
Terminal front end: play against the AI advisor from a shell.

Commands:
  <square>        click a square (select a piece, then click a destination)
  <move>          play a move directly in SAN or UCI (e.g. Nf3, e2e4)
  ai              ask the AI for a move
  undo            take back the last move
  new             start a new game
  pgn             print the game so far as PGN
  quit            exit
"""
from __future__ import annotations

import argparse
import asyncio
import logging

import chess

from .advisor import MoveAdvisor
from .config import SETTINGS
from .controller import GameController
from .render import render


def handle_command(ctrl: GameController, line: str) -> str | None:
    """Apply one command line to ctrl. Returns a message for the user, or None to keep quiet."""
    cmd = line.strip()
    lowered = cmd.lower()
    if not cmd:
        return None
    if lowered == "ai":
        if ctrl.is_game_over():
            return "The game is over."
        asyncio.run(ctrl.trigger_ai_move())
        return None
    if lowered == "undo":
        return None if ctrl.undo() else "Nothing to undo."
    if lowered == "new":
        ctrl.reset()
        return None
    if lowered == "pgn":
        return ctrl.position.pgn(white="Human", black=ctrl.advisor.model)
    if ctrl.is_game_over():
        return "The game is over."
    if lowered in chess.SQUARE_NAMES:
        # "e4" is both a square and a pawn move; it is a click only when it can select or complete a move
        piece = ctrl.position.piece_at(lowered)
        if ctrl.selected or (piece and piece.color is ctrl.position.turn):
            ctrl.select_or_move(lowered)
            return None
    if ctrl.apply_move(cmd):
        return None
    return f"Illegal or unrecognized move: {cmd}"


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Play chess against an AI grandmaster in the terminal.")
    ap.add_argument("--model", default=None, help=f"Model name (default: {SETTINGS.model})")
    ap.add_argument("--log-level", default=SETTINGS.log_level)
    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctrl = GameController(advisor=MoveAdvisor(model=args.model))

    print(__doc__)
    while True:
        print()
        print(render(ctrl))
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        if line.strip().lower() in {"quit", "exit", "q"}:
            return 0
        msg = handle_command(ctrl, line)
        if msg:
            print(msg)


if __name__ == "__main__":
    raise SystemExit(main())
