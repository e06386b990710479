"""Shared fixtures.

pygame runs headless (SDL dummy drivers). The scene fixtures use a real ChessGame
with a seeded search engine and a delay queue whose clock never advances, so
deferred computer plies only run when a test drains the queue.
"""

from __future__ import annotations

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from unittest.mock import MagicMock

import pygame
import pytest

from chess_game import ChessGame
from chess_scene import ChessScene
from chess_ui import PieceTextures
from position_codec import START_FEN, encode_numeric, parse_textual
from scene_nodes import DelayQueue
from search_engine import SearchEngine

# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def game():
    return ChessGame(engine=SearchEngine(seed=7), ai_level=1)


@pytest.fixture
def mock_engine():
    """Stub engine collaborator: start position, every move legal, never game over."""
    eng = MagicMock()
    eng.get_board.return_value = encode_numeric(parse_textual(START_FEN))
    eng.is_move_legal.return_value = True
    eng.make_move.return_value = True
    eng.is_checkmate.return_value = False
    eng.is_draw.return_value = False
    eng.is_computer_move.return_value = False
    eng.white_to_move.return_value = True
    return eng


# ---------------------------------------------------------------------------
# Scene fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def delay_queue():
    return DelayQueue(clock=lambda: 0.0)


@pytest.fixture
def textures(tmp_path):
    # Empty sprites dir: pieces fall back to drawn discs
    return PieceTextures(tmp_path)


@pytest.fixture
def scene(game, delay_queue, textures):
    s = ChessScene(engine=game, delay_queue=delay_queue, textures=textures)
    yield s
    s.stop()


@pytest.fixture
def mock_scene(mock_engine, delay_queue, textures):
    return ChessScene(engine=mock_engine, delay_queue=delay_queue, textures=textures)


@pytest.fixture
def drain():
    """Run every deferred callback that is due now (one yield step)."""

    def _drain(s) -> int:
        return s.update(now=float("inf"))

    return _drain


@pytest.fixture
def drag():
    """Drag the piece on `source` and drop it on the centre of `dest`."""

    def _drag(s, source: str, dest: str) -> None:
        piece = s.renderer.piece_on(source)
        assert piece is not None, f"no piece on {source}"
        target = s.renderer.square_nodes[dest].rect.center
        s.pointer_down(piece.rect.center)
        s.pointer_move(target)
        s.pointer_up(target)

    return _drag


@pytest.fixture
def pygame_display():
    pygame.init()
    try:
        yield pygame.display.set_mode((640, 720))
    finally:
        pygame.quit()
