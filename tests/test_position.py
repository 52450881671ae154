import threading
import unittest

import chess

from grandmaster_chess.pieces import Color, Piece, PieceType
from grandmaster_chess.position import IllegalMoveError, Position

from fakes import fen_after

STALEMATE_FEN = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
FOOLS_MATE = ("f3", "e5", "g4", "Qh4#")


def play(*moves: str) -> Position:
    pos = Position.initial()
    for mv in moves:
        pos, _ = pos.push(mv)
    return pos


class PushTests(unittest.TestCase):
    def test_push_returns_new_position_and_leaves_receiver_untouched(self):
        start = Position.initial()
        after, record = start.push("e4")
        self.assertEqual(start.fen, chess.STARTING_FEN)
        self.assertEqual(start.moves, ())
        self.assertEqual(after.fen, fen_after("e4"))
        self.assertEqual(record.san, "e4")
        self.assertEqual(record.uci, "e2e4")
        self.assertEqual((record.from_square, record.to_square), ("e2", "e4"))
        self.assertEqual(record.piece, Piece(PieceType.PAWN, Color.WHITE))
        self.assertIsNone(record.captured)

    def test_every_legal_move_matches_engine_fen(self):
        for prefix in [(), ("e4", "d5"), ("e4", "e5", "Nf3", "Nc6", "Bc4", "Nf6")]:
            pos = play(*prefix)
            board = pos.board()
            for mv in list(board.legal_moves):
                expected = board.copy()
                expected.push(mv)
                after, _ = pos.push(mv.uci())
                self.assertEqual(after.fen, expected.fen(), msg=f"{prefix} {mv.uci()}")

    def test_illegal_push_raises(self):
        pos = Position.initial()
        with self.assertRaises(IllegalMoveError):
            pos.push("e5")
        with self.assertRaises(IllegalMoveError):
            pos.push({"from": "e2", "to": "e5"})
        self.assertEqual(pos.fen, chess.STARTING_FEN)

    def test_board_copy_is_private(self):
        pos = Position.initial()
        board = pos.board()
        board.push_san("e4")
        self.assertEqual(pos.fen, chess.STARTING_FEN)

    def test_en_passant_capture_is_recorded(self):
        pos = play("e4", "a6", "e5", "d5")
        _, record = pos.push("exd6")
        self.assertEqual(record.captured, Piece(PieceType.PAWN, Color.BLACK))
        self.assertEqual(record.to_square, "d6")

    def test_promotion_is_recorded(self):
        pos = play("h4", "g5", "hxg5", "h6", "gxh6", "Bg7", "hxg7", "Nf6")
        _, record = pos.push({"from": "g7", "to": "h8"})
        self.assertEqual(record.promotion, PieceType.QUEEN)
        self.assertEqual(record.captured, Piece(PieceType.ROOK, Color.BLACK))
        self.assertTrue(record.san.startswith("gxh8=Q"))
        self.assertEqual(record.to_dict()["promotion"], "q")


class SharedReadTests(unittest.TestCase):
    def test_concurrent_queries_leave_position_unchanged(self):
        pos = play("Nf3", "Nf6", "Ng1", "Ng8", "Nf3", "Nf6")
        fen = pos.fen
        legal = sorted(pos.legal_moves())
        errors = []

        def query():
            try:
                for _ in range(200):
                    pos.is_draw()
                    pos.legal_moves()
                    pos.termination_reason()
                    pos.push("e4")
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=query) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(pos.fen, fen)
        self.assertEqual(sorted(pos.legal_moves()), legal)
        self.assertEqual(pos.san_history(), ["Nf3", "Nf6", "Ng1", "Ng8", "Nf3", "Nf6"])


class PopTests(unittest.TestCase):
    def test_pop_replays_to_previous_position(self):
        moves = ["e4", "e5", "Nf3", "Nc6", "Bb5"]
        fens = [Position.initial().fen]
        pos = Position.initial()
        for mv in moves:
            pos, _ = pos.push(mv)
            fens.append(pos.fen)
        for expected in reversed(fens[:-1]):
            pos = pos.pop()
            self.assertEqual(pos.fen, expected)
        self.assertIs(pos.pop(), pos)


class StatusTests(unittest.TestCase):
    def test_turn_text(self):
        self.assertEqual(Position.initial().status_text(), "White's turn")
        self.assertEqual(play("e4").status_text(), "Black's turn")

    def test_check(self):
        pos = play("e4", "f5", "Qh5+")
        self.assertTrue(pos.is_check())
        self.assertEqual(pos.status_text(), "Check!")
        self.assertFalse(pos.is_game_over())

    def test_checkmate_names_side_not_to_move(self):
        pos = play(*FOOLS_MATE)
        self.assertTrue(pos.is_checkmate())
        self.assertEqual(pos.status_text(), "Checkmate! Black wins!")
        self.assertEqual(pos.termination_reason(), "checkmate")
        self.assertEqual(pos.result(), "0-1")

    def test_stalemate_is_draw(self):
        pos = Position(start_fen=STALEMATE_FEN)
        self.assertTrue(pos.is_draw())
        self.assertEqual(pos.status_text(), "Draw!")
        self.assertEqual(pos.termination_reason(), "stalemate")
        self.assertEqual(pos.result(), "1/2-1/2")

    def test_threefold_repetition_is_draw(self):
        pos = play("Nf3", "Nf6", "Ng1", "Ng8", "Nf3", "Nf6", "Ng1", "Ng8")
        self.assertTrue(pos.is_draw())
        self.assertEqual(pos.termination_reason(), "threefold_repetition")

    def test_terminal_position_rejects_moves(self):
        pos = play(*FOOLS_MATE)
        with self.assertRaises(IllegalMoveError) as ctx:
            pos.push("a3")
        self.assertEqual(ctx.exception.reason, "game_over")

    def test_queries(self):
        pos = play("e4")
        self.assertEqual(pos.turn, Color.BLACK)
        self.assertEqual(pos.piece_at("e4"), Piece(PieceType.PAWN, Color.WHITE))
        self.assertIsNone(pos.piece_at("e2"))
        self.assertEqual(pos.san_history(), ["e4"])
        self.assertEqual(pos.last_move_squares(), ("e2", "e4"))
        self.assertEqual(len(pos.legal_moves()), 20)


class PgnTests(unittest.TestCase):
    def test_pgn_contains_headers_and_moves(self):
        pgn = play(*FOOLS_MATE).pgn(white="Human", black="test-model")
        self.assertIn('[White "Human"]', pgn)
        self.assertIn('[Black "test-model"]', pgn)
        self.assertIn('[Result "0-1"]', pgn)
        self.assertIn("1. f3 e5 2. g4 Qh4#", pgn)

    def test_pgn_of_custom_start_records_fen(self):
        pgn = Position(start_fen=STALEMATE_FEN).pgn()
        self.assertIn('[FEN "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"]', pgn)


if __name__ == "__main__":
    unittest.main()
