# search_engine.py
import random
import time

import chess

PIECE_VALUES = {
    chess.PAWN: 100,
    chess.KNIGHT: 300,
    chess.BISHOP: 300,
    chess.ROOK: 500,
    chess.QUEEN: 900,
    chess.KING: 20_000,
}

MATE_SCORE = 100_000
INF = 10**9


class _SearchTimeout(Exception):
    pass


class SearchEngine:
    """
    Material-only alpha-beta engine for computer-controlled sides.

    Contract:
      - choose_move(board, level=...) -> (move_or_none, score_stm_int)
      - eval_position(board) -> score_stm_int

    score_stm_int: from side-to-move perspective (+ = side to move better)

    Iterative deepening at root; depth 1 always completes, deeper iterations are
    dropped if the level's time budget runs out before they finish.
    """

    TIME_CHECK_MASK = 0x3FF  # check clock every 1024 nodes

    def __init__(self, seed=None):
        self.rng = random.Random(seed)
        self._deadline = 1e9
        self._nodes = 0
        self._timed = False

    # ---------------------------
    # Public API
    # ---------------------------
    def choose_move(self, board: chess.Board, level: int = 3):
        if board.is_game_over():
            return None, self._terminal_score_stm(board)

        depth, time_limit_s, noise = self._level_params(int(level))
        self._begin_search(time_limit_s)

        moves = self._ordered_moves(board)
        best_mv = moves[0]
        best_score = -INF
        scored: list[tuple[int, chess.Move]] = []

        for d in range(1, depth + 1):
            self._timed = d > 1
            try:
                this_scored = self._search_root(board, moves, d, full_window=noise > 0)
            except _SearchTimeout:
                break

            this_scored.sort(key=lambda sm: sm[0], reverse=True)
            scored = this_scored
            best_score, best_mv = scored[0]
            # Next iteration searches the best line first
            moves = [mv for _, mv in scored]

        if noise > 0 and len(scored) > 1:
            near = [mv for score, mv in scored if score >= best_score - noise]
            best_mv = self.rng.choice(near)

        return best_mv, int(best_score)

    def eval_position(self, board: chess.Board) -> int:
        if board.is_game_over():
            return self._terminal_score_stm(board)
        return self._evaluate(board)

    # ---------------------------
    # Search
    # ---------------------------
    def _begin_search(self, time_limit_s: float) -> None:
        self._nodes = 0
        self._deadline = time.perf_counter() + float(time_limit_s)

    def _level_params(self, level: int):
        # (depth, time budget seconds, root noise in centipawns)
        if level <= 1:
            return (1, 0.05, 120)
        if level == 2:
            return (2, 0.2, 40)
        if level == 3:
            return (3, 0.6, 0)
        if level == 4:
            return (4, 1.5, 0)
        return (5, 5.0, 0)

    def _time_up(self) -> bool:
        self._nodes += 1
        if not self._timed:
            return False
        if (self._nodes & self.TIME_CHECK_MASK) == 0:
            return time.perf_counter() > self._deadline
        return False

    def _search_root(self, board: chess.Board, moves, depth: int, *, full_window: bool):
        out: list[tuple[int, chess.Move]] = []
        alpha = -INF
        for mv in moves:
            board.push(mv)
            try:
                # Full window keeps every root score exact (needed for noisy picks)
                lo = -INF if full_window else alpha
                score = -self._alphabeta(board, depth - 1, -INF, -lo, 1)
            finally:
                board.pop()
            out.append((score, mv))
            if score > alpha:
                alpha = score
        return out

    def _alphabeta(self, board: chess.Board, depth: int, alpha: int, beta: int, ply: int) -> int:
        if self._time_up():
            raise _SearchTimeout()

        if board.is_checkmate():
            return -MATE_SCORE + ply
        if board.is_game_over():
            return 0
        if depth <= 0:
            return self._evaluate(board)

        for mv in self._ordered_moves(board):
            board.push(mv)
            try:
                score = -self._alphabeta(board, depth - 1, -beta, -alpha, ply + 1)
            finally:
                board.pop()
            if score >= beta:
                return beta
            if score > alpha:
                alpha = score
        return alpha

    # ---------------------------
    # Move ordering / eval
    # ---------------------------
    def _ordered_moves(self, board: chess.Board) -> list[chess.Move]:
        """Promotions, then captures (most valuable victim first), then quiet moves."""
        promos, caps, quiets = [], [], []
        for mv in board.legal_moves:
            if mv.promotion:
                promos.append(mv)
            elif board.is_capture(mv):
                caps.append(mv)
            else:
                quiets.append(mv)

        def victim_value(mv):
            victim = board.piece_type_at(mv.to_square) or chess.PAWN  # en passant
            attacker = board.piece_type_at(mv.from_square) or chess.PAWN
            return PIECE_VALUES[victim] * 10 - PIECE_VALUES[attacker]

        promos.sort(key=lambda mv: mv.promotion != chess.QUEEN)
        caps.sort(key=victim_value, reverse=True)
        return promos + caps + quiets

    def _terminal_score_stm(self, board: chess.Board) -> int:
        if board.is_checkmate():
            return -MATE_SCORE
        return 0

    def _evaluate(self, board: chess.Board) -> int:
        white = 0
        for piece in board.piece_map().values():
            v = PIECE_VALUES[piece.piece_type]
            white += v if piece.color == chess.WHITE else -v
        return white if board.turn == chess.WHITE else -white
