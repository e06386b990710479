# game_view.py
import logging

import pygame

from chess_game import COMPUTER, HUMAN
from chess_scene import ChessScene
from chess_ui import SQUARE_SIZE
from position_codec import START_FEN
from scene_nodes import ButtonNode, Node

_log = logging.getLogger(__name__)

BAR_HEIGHT = 50
BAR_PADDING_X = 10
BUTTON_GAP = 8
BOARD_MARGIN = 24
HUD_HEIGHT = 56

BACKGROUND = (255, 255, 255)
BAR_BACKGROUND = (242, 242, 242)

PLAYER_OPTIONS = (("Human", HUMAN), ("Computer", COMPUTER))

# (title, FEN) offered by the position select
TEST_POSITIONS = (
    ("Start", START_FEN),
    ("Mate in one", "6k1/5ppp/8/1R6/8/2K5/8/8 w KQkq - 0 1"),
    ("Promotion", "5k2/1P6/8/8/3K4/8/8/8 w KQkq - 0 1"),
)


def window_size(square_size: int = SQUARE_SIZE) -> tuple[int, int]:
    board_px = 8 * square_size
    return (2 * BOARD_MARGIN + board_px, BAR_HEIGHT + HUD_HEIGHT + board_px + BOARD_MARGIN)


class CycleSelect:
    """A button that steps through (title, value) options on each click."""

    def __init__(self, label: str, options, *, node_id: str, rect, on_change=None):
        self.label = label
        self.options = tuple(options)
        self.index = 0
        self.on_change = on_change
        self.button = ButtonNode(self._title(), node_id=node_id, rect=rect, action=self.cycle, font_size=18)

    def _title(self) -> str:
        title = self.options[self.index][0]
        return f"{self.label}: {title}" if self.label else title

    @property
    def value(self):
        return self.options[self.index][1]

    def set_index(self, index: int) -> None:
        self.index = index % len(self.options)
        self.button.text = self._title()

    def cycle(self) -> None:
        self.set_index(self.index + 1)
        if callable(self.on_change):
            self.on_change(self.value)


class GameView:
    """
    Window contents: a toolbar above the chess scene.

    The toolbar only edits the pending setup (players, position); nothing changes on
    the board until Reset is pressed.
    """

    def __init__(self, *, square_size: int = SQUARE_SIZE, scene: ChessScene | None = None, **scene_kwargs):
        self.size = window_size(square_size)
        w, _ = self.size

        if scene is None:
            scene = ChessScene(
                origin=(BOARD_MARGIN, BAR_HEIGHT + HUD_HEIGHT),
                square_size=square_size,
                **scene_kwargs,
            )
        self.scene = scene

        # --- Top bar ---
        self.bar = Node("toolbar", "bar", rect=(0, 0, w, BAR_HEIGHT))
        btn_h = BAR_HEIGHT - 2 * BUTTON_GAP
        y = BUTTON_GAP
        x = BAR_PADDING_X

        self.btn_reset = self.bar.add_child(ButtonNode(
            "Reset", node_id="reset", rect=(x, y, 80, btn_h),
            action=self._on_reset, background=(45, 125, 246), font_size=18,
        ))
        x += 80 + BUTTON_GAP

        self.white_select = CycleSelect("White", PLAYER_OPTIONS, node_id="white-player", rect=(x, y, 150, btn_h))
        self.bar.add_child(self.white_select.button)
        x += 150 + BUTTON_GAP

        self.black_select = CycleSelect("Black", PLAYER_OPTIONS, node_id="black-player", rect=(x, y, 150, btn_h))
        self.bar.add_child(self.black_select.button)
        x += 150 + BUTTON_GAP

        self.position_select = CycleSelect("", TEST_POSITIONS, node_id="test-position",
                                           rect=(x, y, max(80, w - x - BAR_PADDING_X), btn_h))
        self.bar.add_child(self.position_select.button)

    # --------------------------------------------------------
    # Toolbar actions
    # --------------------------------------------------------
    def _on_reset(self) -> None:
        fen = self.position_select.value
        white = self.white_select.value
        black = self.black_select.value
        _log.info("Reset: white=%s black=%s fen=%s", white, black, fen)
        self.scene.reset(fen, white=white, black=black)

    # --------------------------------------------------------
    # Frame loop hooks
    # --------------------------------------------------------
    def handle_event(self, event) -> None:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            hit = self.bar.hit_test(event.pos)
            if hit is not None:
                if hit.on_click is not None:
                    hit.on_click()
                return
        self.scene.handle_event(event)

    def update(self) -> int:
        return self.scene.update()

    def draw(self, surface) -> None:
        surface.fill(BACKGROUND)
        pygame.draw.rect(surface, BAR_BACKGROUND, self.bar.rect)
        self.bar.draw(surface)
        self.scene.draw(surface)

    def close(self) -> None:
        self.scene.stop()
