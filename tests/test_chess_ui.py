"""Tests for the board renderer, promotion prompt, game-over popup and status line."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from chess_ui import (
    BoardRenderer,
    GameOverPopup,
    HudView,
    PieceTextures,
    PromotionOverlay,
    SQ_DARK,
    SQ_LIGHT,
    sprite_name,
)
from position_codec import START_FEN, Piece, Placement, parse_textual
from scene_nodes import Node, PieceNode


@pytest.fixture
def root():
    return Node("page", rect=(0, 0, 700, 700))


@pytest.fixture
def renderer(root, tmp_path):
    return BoardRenderer(root, origin=(0, 0), square_size=64, textures=PieceTextures(tmp_path))


def _piece_count(renderer) -> int:
    return sum(isinstance(n, PieceNode) for n in renderer.board_node.walk())


# ---------------------------------------------------------------------------
# Board renderer
# ---------------------------------------------------------------------------


class TestBoardRenderer:

    def test_builds_64_squares(self, renderer):
        assert len(renderer.square_nodes) == 64
        assert renderer.square_nodes["a8"].rect.topleft == (0, 0)
        assert renderer.square_nodes["h1"].rect.topleft == (7 * 64, 7 * 64)

    def test_square_colours(self, renderer):
        assert renderer.square_nodes["a8"].class_name == "light square"
        assert renderer.square_nodes["h8"].class_name == "dark square"
        assert renderer.square_nodes["a1"].class_name == "dark square"
        assert renderer.square_nodes["h1"].class_name == "light square"
        assert renderer.square_nodes["a1"].color == SQ_DARK
        assert renderer.square_nodes["h1"].color == SQ_LIGHT

    def test_render_round_trip(self, renderer):
        parsed = parse_textual(START_FEN)
        renderer.render(parsed)
        assert set(renderer.placements()) == set(parsed)

    def test_piece_nodes_are_tagged(self, renderer):
        renderer.render([Placement("e4", Piece("white", "queen"))])
        node = renderer.piece_on("e4")
        assert node.id == "wQ-e4"
        assert node.class_name == "piece white-queen"
        assert node.parent is renderer.square_nodes["e4"]
        assert renderer.square_of(node) == "e4"

    def test_drag_start_handler_is_wired(self, renderer):
        handler = MagicMock()
        renderer.on_drag_start = handler
        renderer.render([Placement("e2", Piece("white", "pawn"))])
        assert renderer.piece_on("e2").on_drag_start is handler

    def test_render_replaces_previous_position(self, renderer):
        renderer.render(parse_textual(START_FEN))
        renderer.render([Placement("d4", Piece("black", "king"))])
        assert renderer.placements() == [Placement("d4", Piece("black", "king"))]
        assert _piece_count(renderer) == 1

    def test_clear_is_idempotent(self, renderer):
        renderer.render(parse_textual(START_FEN))
        renderer.clear()
        once = renderer.placements()
        renderer.clear()
        assert renderer.placements() == once == []
        assert _piece_count(renderer) == 0
        # Squares survive
        assert len(renderer.square_nodes) == 64
        assert all(sq.parent is not None for sq in renderer.square_nodes.values())

    def test_missing_square_is_skipped(self, renderer, caplog):
        placements = [
            Placement("z9", Piece("white", "rook")),
            Placement("a1", Piece("white", "rook")),
        ]
        with caplog.at_level(logging.WARNING, logger="chess_ui"):
            renderer.render(placements)
        assert "Square not found" in caplog.text
        assert renderer.placements() == [Placement("a1", Piece("white", "rook"))]


class TestTextures:

    def test_sprite_name(self):
        assert sprite_name("piece black-knight") == "black-knight.png"


# ---------------------------------------------------------------------------
# Overlays
# ---------------------------------------------------------------------------


class TestPromotionOverlay:

    def test_hidden_until_shown(self, root):
        prompt = PromotionOverlay(root, rect=(100, 100, 240, 180))
        assert not prompt.active
        prompt.show()
        assert prompt.active
        assert prompt.selection == "Queen"

    def test_cycle_through_options(self, root):
        prompt = PromotionOverlay(root, rect=(100, 100, 240, 180))
        seen = [prompt.selection]
        for _ in range(4):
            prompt.cycle()
            seen.append(prompt.selection)
        assert seen == ["Queen", "Rook", "Bishop", "Knight", "Queen"]

    def test_submit_reports_selection(self, root):
        prompt = PromotionOverlay(root, rect=(100, 100, 240, 180))
        prompt.on_submit = MagicMock()
        prompt.show()
        prompt.select("Knight")
        prompt.submit()
        prompt.on_submit.assert_called_once_with("Knight")

    def test_clicking_submit_button(self, root):
        prompt = PromotionOverlay(root, rect=(100, 100, 240, 180))
        prompt.on_submit = MagicMock()
        prompt.show()
        hit = root.hit_test(prompt.submit_node.rect.center)
        assert hit is prompt.submit_node
        hit.on_click()
        prompt.on_submit.assert_called_once_with("Queen")


class TestGameOverPopup:

    def test_open_and_close(self, root):
        popup = GameOverPopup(root, rect=(50, 50, 300, 100))
        assert not popup.is_open
        assert popup.message is None

        popup.open("Checkmate!")
        assert popup.is_open
        assert popup.message == "Checkmate!"
        assert len(popup.content.children) == 1

        popup.close()
        assert not popup.is_open
        assert popup.content.children == []

    def test_open_is_logged(self, root, caplog):
        popup = GameOverPopup(root, rect=(50, 50, 300, 100))
        with caplog.at_level(logging.INFO, logger="chess_ui"):
            popup.open("Draw!")
        assert "Draw!" in caplog.text


class TestHudView:

    def test_status_text(self, root, mock_engine):
        hud = HudView(root, rect=(0, 0, 300, 40))
        hud.update(engine=mock_engine)
        assert hud.label.text == "White to move"

        mock_engine.white_to_move.return_value = False
        mock_engine.is_computer_move.return_value = True
        hud.update(engine=mock_engine)
        assert hud.label.text == "Black to move (computer)"

        mock_engine.is_checkmate.return_value = True
        hud.update(engine=mock_engine)
        assert hud.label.text == "Checkmate"

    def test_override(self, root, mock_engine):
        hud = HudView(root, rect=(0, 0, 300, 40))
        hud.set_override("Paused")
        hud.update(engine=mock_engine)
        assert hud.label.text == "Paused"
