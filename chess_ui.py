# chess_ui.py
import logging
from pathlib import Path

import pygame

from position_codec import RANKS, FILES, Placement, piece_from_identity, square_id
from scene_nodes import ButtonNode, LabelNode, Node, PanelNode, PieceNode, SquareNode

_log = logging.getLogger(__name__)

SQUARE_SIZE = 72
PIECE_PAD = 4
SPRITES_DIR = Path(__file__).resolve().parent / "assets" / "sprites"

SQ_LIGHT = (237, 237, 237)
SQ_DARK = (140, 140, 140)
PIECE_FILL = {"white": (250, 250, 250), "black": (30, 30, 30)}
PIECE_INK = {"white": (30, 30, 30), "black": (250, 250, 250)}
KIND_GLYPHS = {
    "pawn": "P", "knight": "N", "bishop": "B",
    "rook": "R", "queen": "Q", "king": "K",
}


def sprite_name(class_name: str) -> str:
    """'piece white-queen' -> 'white-queen.png' (the styling token picks the sprite)."""
    return class_name.split()[-1] + ".png"


class PieceTextures:
    """Piece images keyed by class name; sprite file if present, drawn disc otherwise."""

    def __init__(self, sprites_dir: Path = SPRITES_DIR):
        self.sprites_dir = Path(sprites_dir)
        self._cache: dict[tuple[str, tuple[int, int]], pygame.Surface] = {}

    def get(self, class_name: str, size) -> pygame.Surface:
        key = (class_name, (int(size[0]), int(size[1])))
        img = self._cache.get(key)
        if img is None:
            img = self._load(class_name, key[1])
            self._cache[key] = img
        return img

    def _load(self, class_name: str, size) -> pygame.Surface:
        path = self.sprites_dir / sprite_name(class_name)
        if path.is_file():
            return pygame.transform.smoothscale(pygame.image.load(str(path)), size)
        return self._draw(class_name, size)

    def _draw(self, class_name: str, size) -> pygame.Surface:
        color, _, kind = class_name.split()[-1].partition("-")
        surf = pygame.Surface(size, pygame.SRCALPHA)
        w, h = size
        r = min(w, h) // 2 - 2
        pygame.draw.circle(surf, PIECE_FILL.get(color, (200, 0, 200)), (w // 2, h // 2), r)
        pygame.draw.circle(surf, (90, 90, 90), (w // 2, h // 2), r, 2)
        font = pygame.font.SysFont(None, int(h * 0.7))
        glyph = font.render(KIND_GLYPHS.get(kind, "?"), True, PIECE_INK.get(color, (0, 0, 0)))
        surf.blit(glyph, glyph.get_rect(center=(w // 2, h // 2)))
        return surf


class BoardRenderer:
    """Rank/square nodes (built once) + piece nodes (rebuilt on every render)."""

    def __init__(self, root: Node, *, origin=(0, 0), square_size: int = SQUARE_SIZE, textures=None):
        self.root = root
        self.origin = (int(origin[0]), int(origin[1]))
        self.square_size = int(square_size)
        self.textures = textures or PieceTextures()

        s = self.square_size
        self.board_node = Node("chess-board", "board", rect=(self.origin[0], self.origin[1], 8 * s, 8 * s))
        root.add_child(self.board_node)

        self.square_nodes: dict[str, SquareNode] = {}
        self.piece_nodes: dict[str, PieceNode] = {}  # square id -> piece node

        # Wired by the input controller
        self.on_drag_start = None

        self.draw_squares()

    # ---- geometry ----
    def square_rect(self, rank: int, file: int) -> pygame.Rect:
        s = self.square_size
        ox, oy = self.origin
        return pygame.Rect(ox + (file - 1) * s, oy + (8 - rank) * s, s, s)

    def draw_squares(self) -> None:
        # Colour alternates along the scan and once more per rank; a8 is light
        colour_inx = 0
        for rank in range(8, 0, -1):
            rank_node = Node(f"rank-{rank}", "rank")
            rank_node.rect = self.square_rect(rank, 1).union(self.square_rect(rank, 8))
            self.board_node.add_child(rank_node)

            for file in range(1, 9):
                sq = square_id(rank, file)
                light = colour_inx % 2 == 0
                node = SquareNode(
                    sq,
                    "light square" if light else "dark square",
                    rect=self.square_rect(rank, file),
                    color=SQ_LIGHT if light else SQ_DARK,
                )
                rank_node.add_child(node)
                self.square_nodes[sq] = node
                colour_inx += 1
            colour_inx += 1

    # ---- position model ----
    def piece_on(self, sq: str) -> PieceNode | None:
        return self.piece_nodes.get(sq)

    def square_of(self, piece: PieceNode) -> str | None:
        parent = piece.parent
        return parent.id if isinstance(parent, SquareNode) else None

    def placements(self) -> list[Placement]:
        """Read the rendered board back as (square, piece) pairs."""
        out: list[Placement] = []
        for rank in RANKS[::-1]:
            for f in FILES:
                sq_node = self.square_nodes[f + rank]
                for child in sq_node.children:
                    if isinstance(child, PieceNode):
                        out.append(Placement(sq_node.id, piece_from_identity(child.id)))
        return out

    # ---- clear / render ----
    def clear(self) -> None:
        for sq_node in self.square_nodes.values():
            for child in list(sq_node.children):
                if isinstance(child, PieceNode):
                    sq_node.remove_child(child)
        self.piece_nodes.clear()

    def render(self, placements) -> None:
        self.clear()
        for pl in placements:
            self.set_piece(pl)

    def set_piece(self, pl: Placement) -> PieceNode | None:
        identity = pl.piece.identity(pl.square)
        sq_node = self.square_nodes.get(pl.square)
        if sq_node is None:
            _log.warning("Could not set %s at square %s. Square not found.", identity, pl.square)
            return None

        node = PieceNode(identity, pl.piece.class_name, texture_fn=self.textures.get)
        node.rect = sq_node.rect.inflate(-2 * PIECE_PAD, -2 * PIECE_PAD)
        node.on_drag_start = self.on_drag_start
        sq_node.add_child(node)
        self.piece_nodes[pl.square] = node
        return node


class HudView:
    """Status line above the board."""

    def __init__(self, root: Node, *, rect, z: int = 200):
        self.label = LabelNode("", node_id="status", rect=rect, font_size=26, z=z)
        root.add_child(self.label)
        self._override = None

    def set_override(self, text=None) -> None:
        self._override = text

    def update(self, *, engine) -> None:
        if self._override:
            self.label.text = self._override
            return
        if engine.is_checkmate():
            self.label.text = "Checkmate"
            return
        if engine.is_draw():
            self.label.text = "Draw"
            return
        side = "White" if engine.white_to_move() else "Black"
        text = f"{side} to move"
        if engine.is_computer_move():
            text += " (computer)"
        self.label.text = text


class PromotionOverlay:
    """Promotion prompt: a select control cycling Q/R/B/N and a submit button."""

    OPTIONS = ("Queen", "Rook", "Bishop", "Knight")

    def __init__(self, root: Node, *, rect, z: int = 210):
        rect = pygame.Rect(rect)
        self.panel = PanelNode("promotion-prompt", "prompt", rect=rect, background=(140, 140, 140), z=z)
        self.panel.hidden = True
        root.add_child(self.panel)

        row_h = rect.h // 3
        self.panel.add_child(LabelNode(
            "Promote to", node_id="promotion-title",
            rect=(rect.x, rect.y, rect.w, row_h), font_size=24, z=z + 1,
        ))
        self.select_node = self.panel.add_child(ButtonNode(
            self.OPTIONS[0], node_id="promotion-select",
            rect=(rect.x + 16, rect.y + row_h, rect.w - 32, row_h - 8),
            action=self.cycle, z=z + 1,
        ))
        self.submit_node = self.panel.add_child(ButtonNode(
            "OK", node_id="promotion-submit",
            rect=(rect.x + 16, rect.y + 2 * row_h, rect.w - 32, row_h - 8),
            action=self.submit, background=(45, 125, 246), z=z + 1,
        ))

        self.on_submit = None

    @property
    def active(self) -> bool:
        return not self.panel.hidden

    @property
    def selection(self) -> str:
        return self.select_node.text

    def select(self, value: str) -> None:
        self.select_node.text = str(value)

    def cycle(self) -> None:
        try:
            i = self.OPTIONS.index(self.selection)
        except ValueError:
            i = -1
        self.select(self.OPTIONS[(i + 1) % len(self.OPTIONS)])

    def show(self) -> None:
        self.select(self.OPTIONS[0])
        self.panel.hidden = False

    def clear(self) -> None:
        self.panel.hidden = True

    def submit(self) -> None:
        cb = self.on_submit
        if callable(cb):
            cb(self.selection)


class GameOverPopup:
    """Fixed popup container; open() inserts one message node, close() removes it."""

    def __init__(self, root: Node, *, rect, z: int = 220):
        self.container = PanelNode("game-over-popup", "popup", rect=rect, background=(250, 250, 250), z=z)
        self.container.hidden = True
        self.container.on_click = self.close
        root.add_child(self.container)

        self.content = self.container.add_child(Node("game-over-content", "popup-content", rect=rect, z=z + 1))

    @property
    def is_open(self) -> bool:
        return not self.container.hidden

    @property
    def message(self) -> str | None:
        for child in self.content.children:
            return child.text
        return None

    def open(self, message: str) -> None:
        self.content.add_child(LabelNode(
            message, node_id="game-over-message", rect=self.content.rect, font_size=40, z=self.content.z_position + 1,
        ))
        self.container.hidden = False
        _log.info("Game over: %s", message)

    def close(self) -> None:
        for child in list(self.content.children):
            self.content.remove_child(child)
        self.container.hidden = True
