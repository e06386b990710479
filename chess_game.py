# chess_game.py
import logging

import chess

from position_codec import square_coords
from search_engine import SearchEngine

_log = logging.getLogger(__name__)

HUMAN = 0
COMPUTER = 1

NO_PROMOTION = 0
PROMOTION_PIECES = {1: chess.QUEEN, 2: chess.ROOK, 3: chess.BISHOP, 4: chess.KNIGHT}

DEFAULT_AI_LEVEL = 2


def encode_board(board: chess.Board) -> list[int]:
    """
    64 ints scanned a8..h1. 0 = empty, odd = black, even = white:
    1,2 pawn  3,4 knight  5,6 bishop  7,8 rook  9,10 queen  11,12 king.
    """
    out = [0] * 64
    for sq, piece in board.piece_map().items():
        i = (7 - chess.square_rank(sq)) * 8 + chess.square_file(sq)
        # python-chess piece types run PAWN=1 .. KING=6 in the same order
        out[i] = 2 * piece.piece_type - (1 if piece.color == chess.BLACK else 0)
    return out


def to_chess_square(sq: str) -> int:
    rank, file = square_coords(sq)
    return chess.square(file - 1, rank - 1)


class ChessGame:
    """
    Authoritative game session behind the board.

    The board UI never mutates pieces itself: it asks this object whether a move is
    legal, asks it to apply moves, then re-reads the position with get_board().

    Player flags: 0 = human, 1 = computer. reset_board() clears them back to
    human/human; callers re-apply set_players() after a reset.
    """

    def __init__(self, *, engine=None, book=None, ai_level: int = DEFAULT_AI_LEVEL):
        self.board = chess.Board()

        self.white_is_computer = False
        self.black_is_computer = False

        # Computer move selection
        self.engine = engine if engine is not None else SearchEngine()
        self.book = book
        self.book_randomness = 0.25
        self.ai_level = int(ai_level)

    @classmethod
    def new(cls, **kwargs) -> "ChessGame":
        return cls(**kwargs)

    # =========================================================
    # Position / players
    # =========================================================
    def set_board(self, fen: str) -> None:
        # Placement must parse; chess legality of the position is not checked
        self.board = chess.Board(fen)

    def set_players(self, white: int, black: int) -> None:
        for flag in (white, black):
            if flag not in (HUMAN, COMPUTER):
                raise ValueError(f"Player flag must be 0 (human) or 1 (computer), got {flag!r}")
        self.white_is_computer = bool(white)
        self.black_is_computer = bool(black)

    def reset_board(self) -> None:
        self.board.reset()
        self.white_is_computer = False
        self.black_is_computer = False

    def get_board(self) -> list[int]:
        return encode_board(self.board)

    def fen(self) -> str:
        return self.board.fen()

    def white_to_move(self) -> bool:
        return self.board.turn == chess.WHITE

    @property
    def last_move(self) -> chess.Move | None:
        return self.board.peek() if self.board.move_stack else None

    # =========================================================
    # Status
    # =========================================================
    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_draw(self) -> bool:
        return self.board.is_game_over() and not self.board.is_checkmate()

    def is_computer_move(self) -> bool:
        if self.board.is_game_over():
            return False
        if self.board.turn == chess.WHITE:
            return self.white_is_computer
        return self.black_is_computer

    # =========================================================
    # Moves
    # =========================================================
    def _candidate_moves(self, source: str, dest: str) -> list[chess.Move]:
        from_sq = to_chess_square(source)
        to_sq = to_chess_square(dest)
        return [m for m in self.board.legal_moves if m.from_square == from_sq and m.to_square == to_sq]

    def is_move_legal(self, source: str, dest: str) -> bool:
        return bool(self._candidate_moves(source, dest))

    def make_move(self, source: str, dest: str, promotion: int = NO_PROMOTION) -> bool:
        """
        Apply a human move. Returns True if a move was pushed.

        promotion: 0 = none, 1 = queen, 2 = rook, 3 = bishop, 4 = knight.
        The code is ignored for ordinary moves; a promoting move with code 0 is rejected.
        """
        if promotion != NO_PROMOTION and promotion not in PROMOTION_PIECES:
            raise ValueError(f"Invalid promotion code: {promotion!r}")

        candidates = self._candidate_moves(source, dest)
        if not candidates:
            return False

        if any(m.promotion for m in candidates):
            if promotion == NO_PROMOTION:
                _log.warning("Promotion %s%s without a piece choice; move rejected", source, dest)
                return False
            mv = chess.Move(candidates[0].from_square, candidates[0].to_square, promotion=PROMOTION_PIECES[promotion])
        else:
            mv = candidates[0]

        self.board.push(mv)
        return True

    def choose_computer_move(self) -> chess.Move | None:
        if self.book is not None:
            mv = self.book.pick(self.board, randomness=self.book_randomness)
            if mv is not None and mv in self.board.legal_moves:
                return mv

        mv, _ = self.engine.choose_move(self.board.copy(), level=self.ai_level)
        return mv

    def make_computer_move(self) -> chess.Move | None:
        if self.board.is_game_over():
            return None

        mv = self.choose_computer_move()
        if mv is None or mv not in self.board.legal_moves:
            _log.warning("No computer move available for %s", self.board.fen())
            return None

        _log.info("Computer plays %s", self.board.san(mv))
        self.board.push(mv)
        return mv
