import logging
import random

import chess
import chess.pgn

_log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10  # plies read from each game


def pos_key(board: chess.Board) -> str:
    turn = "w" if board.turn == chess.WHITE else "b"
    return f"{board.board_fen()} {turn}"


class OpeningBook:
    """
    Opening moves indexed from a PGN game collection.

    Each position reached in the first `max_depth` plies of a game maps to the moves
    played from it; the weight of a move is how many games played it.
    """

    def __init__(self, book_path: str, *, max_depth: int = DEFAULT_MAX_DEPTH, seed: int | None = None):
        self.book_path = str(book_path)
        self.max_depth = int(max_depth)
        self.rng = random.Random(seed)
        self._index: dict[str, dict[str, int]] | None = None

    def __len__(self) -> int:
        return len(self.load())

    def load(self) -> dict[str, dict[str, int]]:
        if self._index is not None:
            return self._index

        index: dict[str, dict[str, int]] = {}
        try:
            with open(self.book_path, encoding="utf-8", errors="replace") as f:
                while True:
                    game = chess.pgn.read_game(f)
                    if game is None:
                        break
                    if game.errors:
                        _log.warning("Opening book %s: skipping rest of a game: %s", self.book_path, game.errors[0])
                    self._add_game(index, game)
        except OSError as e:
            _log.warning("Could not read opening book %s: %s", self.book_path, e)
            index = {}

        self._index = index
        return index

    def _add_game(self, index, game) -> None:
        b = game.board()
        for ply, mv in enumerate(game.mainline_moves()):
            if ply >= self.max_depth:
                break
            moves = index.setdefault(pos_key(b), {})
            uci = mv.uci()
            moves[uci] = moves.get(uci, 0) + 1
            b.push(mv)

    def entries(self, board: chess.Board) -> list[tuple[chess.Move, int]]:
        """Legal book moves for this position, highest weight first."""
        known = self.load().get(pos_key(board)) or {}
        out = []
        for uci, weight in known.items():
            mv = chess.Move.from_uci(uci)
            if mv in board.legal_moves:
                out.append((mv, weight))
        out.sort(key=lambda e: e[1], reverse=True)
        return out

    def pick(self, board: chess.Board, randomness: float = 0.2) -> chess.Move | None:
        # randomness: 0 = always highest weight, 1 = always weighted random
        entries = self.entries(board)
        if not entries:
            return None

        if randomness <= 0 or len(entries) == 1:
            return entries[0][0]

        if self.rng.random() >= randomness:
            return entries[0][0]
        return self.rng.choices([mv for mv, _ in entries], weights=[w for _, w in entries], k=1)[0]
