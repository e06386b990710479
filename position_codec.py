# position_codec.py
import logging
from dataclasses import dataclass

_log = logging.getLogger(__name__)

FILES = "abcdefgh"
RANKS = "12345678"

COLORS = ("white", "black")
# Order matters: numeric codes are derived from the index (pawn=1/2 ... king=11/12)
KINDS = ("pawn", "knight", "bishop", "rook", "queen", "king")
KIND_LETTERS = {
    "pawn": "P", "knight": "N", "bishop": "B",
    "rook": "R", "queen": "Q", "king": "K",
}
LETTER_KINDS = {v: k for k, v in KIND_LETTERS.items()}

RANK_DELIMITER = "/"
FIELD_DELIMITER = " "

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class InvalidSquareError(ValueError):
    """Rank or file outside 1..8 (a caller bug, never clamped)."""


# ---------------------------------------------------
# Squares
# ---------------------------------------------------
def square_id(rank: int, file: int) -> str:
    if rank < 1 or rank > 8 or file < 1 or file > 8:
        raise InvalidSquareError(f"Invalid rank or file: rank={rank}, file={file}")
    return FILES[file - 1] + RANKS[rank - 1]


def square_coords(sq: str) -> tuple[int, int]:
    """'e4' -> (rank, file) = (4, 5)."""
    if len(sq) != 2 or sq[0] not in FILES or sq[1] not in RANKS:
        raise InvalidSquareError(f"Invalid square id: {sq!r}")
    return RANKS.index(sq[1]) + 1, FILES.index(sq[0]) + 1


def square_index(sq: str) -> int:
    """Scan index, top-left (a8) = 0 ... bottom-right (h1) = 63."""
    rank, file = square_coords(sq)
    return (8 - rank) * 8 + (file - 1)


def square_from_index(i: int) -> str:
    if i < 0 or i > 63:
        raise InvalidSquareError(f"Invalid square index: {i}")
    return square_id(8 - i // 8, i % 8 + 1)


# ---------------------------------------------------
# Pieces
# ---------------------------------------------------
@dataclass(frozen=True)
class Piece:
    color: str  # "white" | "black"
    kind: str   # "pawn" ... "king"

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """FEN letter -> Piece; uppercase is white."""
        kind = LETTER_KINDS.get(ch.upper())
        if kind is None:
            raise ValueError(f"Not a piece letter: {ch!r}")
        return cls("white" if ch.isupper() else "black", kind)

    @classmethod
    def from_code(cls, code: int) -> "Piece":
        """1..12, odd = black, even = white."""
        if code < 1 or code > 12:
            raise ValueError(f"Not a piece code: {code}")
        kind = KINDS[(code - 1) // 2]
        return cls("black" if code % 2 else "white", kind)

    @property
    def symbol(self) -> str:
        letter = KIND_LETTERS[self.kind]
        return letter if self.color == "white" else letter.lower()

    @property
    def code(self) -> int:
        base = 2 * KINDS.index(self.kind) + 1
        return base if self.color == "black" else base + 1

    @property
    def marker(self) -> str:
        """Colour initial + upper-case kind letter, e.g. 'wP', 'bQ'."""
        return self.color[0] + KIND_LETTERS[self.kind]

    @property
    def class_name(self) -> str:
        return f"piece {self.color}-{self.kind}"

    def identity(self, sq: str) -> str:
        return f"{self.marker}-{sq}"


@dataclass(frozen=True)
class Placement:
    square: str
    piece: Piece


def is_piece_identity(node_id: str) -> bool:
    """Shape test: 5 characters with two leading letters ('wP-e4'); square ids never match."""
    return len(node_id) == 5 and node_id[0].isalpha() and node_id[1].isalpha()


def piece_from_identity(node_id: str) -> Piece:
    if not is_piece_identity(node_id):
        raise ValueError(f"Not a piece identity: {node_id!r}")
    color = {"w": "white", "b": "black"}.get(node_id[0])
    kind = LETTER_KINDS.get(node_id[1])
    if color is None or kind is None:
        raise ValueError(f"Not a piece identity: {node_id!r}")
    return Piece(color, kind)


# ---------------------------------------------------
# Parsing
# ---------------------------------------------------
def parse_textual(text: str) -> list[Placement]:
    """
    Read the placement field of a FEN-like string, starting on a8.

    Digits skip empty squares, '/' starts the next rank down, letters place pieces.
    Anything else is logged and skipped. The first space ends the placement field;
    side to move, castling etc. are not interpreted here.

    No chess validation happens (piece counts, kings). Coordinates leaving the board
    raise InvalidSquareError when a piece would be placed there.
    """
    out: list[Placement] = []
    rank = 8
    file = 1
    for ch in text:
        if "0" <= ch <= "9":
            file += int(ch)
        elif ch == RANK_DELIMITER:
            rank -= 1
            file = 1
        elif ch.isalpha() and ch.upper() in LETTER_KINDS:
            out.append(Placement(square_id(rank, file), Piece.from_symbol(ch)))
            file += 1
        elif ch == FIELD_DELIMITER:
            break
        elif ch.isspace():
            continue
        else:
            _log.warning("%r is an unrecognised character", ch)
    return out


def parse_numeric(values) -> list[Placement]:
    values = list(values)
    if len(values) != 64:
        raise ValueError(f"Expected 64 squares, got {len(values)}")

    out: list[Placement] = []
    for i, v in enumerate(values):
        v = int(v)
        if v == 0:
            continue
        out.append(Placement(square_from_index(i), Piece.from_code(v)))
    return out


def encode_numeric(placements) -> list[int]:
    """Inverse of parse_numeric (used by the engine side and tests)."""
    values = [0] * 64
    for pl in placements:
        values[square_index(pl.square)] = pl.piece.code
    return values
