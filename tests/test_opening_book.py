"""Tests for the PGN opening book."""

from __future__ import annotations

import logging

import chess
import pytest

from opening_book import OpeningBook

PGN = """\
[Event "one"]
[Result "*"]

1. e4 e5 2. Nf3 Nc6 *

[Event "two"]
[Result "*"]

1. e4 c5 *

[Event "three"]
[Result "*"]

1. d4 d5 *
"""


@pytest.fixture
def book_path(tmp_path):
    p = tmp_path / "book.pgn"
    p.write_text(PGN, encoding="utf-8")
    return p


class TestOpeningBook:

    def test_weights_count_games(self, book_path):
        book = OpeningBook(book_path, seed=3)
        entries = book.entries(chess.Board())
        assert entries == [(chess.Move.from_uci("e2e4"), 2), (chess.Move.from_uci("d2d4"), 1)]

    def test_replies_are_indexed(self, book_path):
        book = OpeningBook(book_path)
        board = chess.Board()
        board.push_uci("e2e4")
        moves = {mv.uci() for mv, _ in book.entries(board)}
        assert moves == {"e7e5", "c7c5"}

    def test_max_depth_limits_plies(self, book_path):
        book = OpeningBook(book_path, max_depth=1)
        board = chess.Board()
        board.push_uci("e2e4")
        assert book.entries(board) == []
        assert len(book) == 1

    def test_pick_without_randomness_is_most_played(self, book_path):
        book = OpeningBook(book_path, seed=0)
        assert book.pick(chess.Board(), randomness=0) == chess.Move.from_uci("e2e4")

    def test_pick_random_stays_in_book(self, book_path):
        book = OpeningBook(book_path, seed=5)
        picks = {book.pick(chess.Board(), randomness=1.0) for _ in range(20)}
        assert picks <= {chess.Move.from_uci("e2e4"), chess.Move.from_uci("d2d4")}

    def test_unknown_position(self, book_path):
        book = OpeningBook(book_path)
        board = chess.Board("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
        assert book.pick(board) is None

    def test_missing_file_is_empty(self, tmp_path, caplog):
        book = OpeningBook(tmp_path / "nope.pgn")
        with caplog.at_level(logging.WARNING, logger="opening_book"):
            assert len(book) == 0
        assert "Could not read opening book" in caplog.text
        assert book.pick(chess.Board()) is None
