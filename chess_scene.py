# chess_scene.py
import logging

import pygame

from board_input import DragDropController, PromotionInteraction
from chess_game import ChessGame, DEFAULT_AI_LEVEL, HUMAN
from chess_ui import BoardRenderer, GameOverPopup, HudView, PromotionOverlay, SQUARE_SIZE
from opening_book import OpeningBook
from position_codec import parse_numeric
from scene_nodes import DelayQueue, Node

_log = logging.getLogger(__name__)

CHECKMATE_MESSAGE = "Checkmate!"
DRAW_MESSAGE = "Draw!"

COMPUTER_DELAY_S = 0.0  # pause between computer plies
GHOST_ALPHA = 170


class BoardSync:
    """Re-reads the engine's position into the renderer and reports game over."""

    def __init__(self, engine, renderer: BoardRenderer, notifier: GameOverPopup, hud: HudView | None = None):
        self.engine = engine
        self.renderer = renderer
        self.notifier = notifier
        self.hud = hud

    def refresh(self) -> None:
        self.renderer.render(parse_numeric(self.engine.get_board()))
        self.refresh_hud()

    def refresh_hud(self) -> None:
        if self.hud is not None:
            self.hud.update(engine=self.engine)

    def game_over_message(self) -> str | None:
        if self.engine.is_checkmate():
            return CHECKMATE_MESSAGE
        if self.engine.is_draw():
            return DRAW_MESSAGE
        return None

    def announce_game_over(self) -> bool:
        msg = self.game_over_message()
        if msg is None:
            return False
        self.notifier.open(msg)
        return True


class ComputerMoveLoop:
    """
    Plays engine moves while the side to move is computer-controlled.

    One ply per iteration; the check for the next ply is deferred through the delay
    queue so the frame loop runs between plies. cancel() bumps the generation, which
    turns any already-scheduled continuation into a no-op.
    """

    def __init__(self, engine, sync: BoardSync, delay, *, delay_s: float = COMPUTER_DELAY_S):
        self.engine = engine
        self.sync = sync
        self._delay = delay
        self.delay_s = float(delay_s)

        self.running = False
        self.generation = 0
        self.plies = 0  # plies played since construction

    def start(self) -> bool:
        if self.running:
            return False
        self.running = True
        self._play_ply(self.generation)
        return True

    def cancel(self) -> None:
        self.generation += 1
        self.running = False
        self.sync.refresh_hud()

    def _play_ply(self, gen: int) -> None:
        try:
            mv = self.engine.make_computer_move()
        except Exception:
            self.running = False
            raise

        if mv is None:
            self.running = False
            self.sync.refresh()
            return

        self.plies += 1
        self.sync.refresh()
        self._delay(lambda gen=gen: self._continue(gen), self.delay_s)

    def _continue(self, gen: int) -> None:
        if gen != self.generation:
            _log.debug("Discarding stale computer continuation (gen %d != %d)", gen, self.generation)
            return

        if self.sync.announce_game_over():
            self.running = False
            return

        if self.engine.is_computer_move():
            self._play_ply(gen)
            return

        self.running = False
        self.sync.refresh_hud()


class MoveDispatcher:
    """The single path from a human move intent to the engine."""

    def __init__(self, engine, sync: BoardSync, computer_loop: ComputerMoveLoop):
        self.engine = engine
        self.sync = sync
        self.computer_loop = computer_loop

    def can_move(self, source: str, dest: str) -> bool:
        # Human input waits while a computer side is to move
        if self.engine.is_computer_move():
            return False
        # Illegal drops are expected; nothing changes and nothing is reported
        return self.engine.is_move_legal(source, dest)

    def attempt_move(self, source: str, dest: str, promotion: int = 0) -> bool:
        if not self.can_move(source, dest):
            return False

        applied = self.engine.make_move(source, dest, promotion)
        self.sync.refresh()
        if not applied:
            return False

        # A continuation still queued from the last computer ply belongs to the old position
        if self.computer_loop.running:
            self.computer_loop.cancel()

        if self.sync.announce_game_over():
            return True

        if self.engine.is_computer_move():
            self.computer_loop.start()
        return True


class ChessScene:
    """
    Owns the node tree and wires board components together.

    Construction order follows the data flow: renderer, notifier and prompt first,
    then sync, computer loop, dispatcher, promotion check, drag-drop controller.
    """

    def __init__(self, *, engine=None, origin=(24, 72), square_size: int = SQUARE_SIZE,
                 ai_level: int = DEFAULT_AI_LEVEL, computer_delay_s: float = COMPUTER_DELAY_S,
                 book_path: str | None = None, textures=None, delay_queue: DelayQueue | None = None):
        if engine is None:
            book = OpeningBook(book_path) if book_path else None
            engine = ChessGame(book=book, ai_level=ai_level)
        self.engine = engine
        self.delay_queue = delay_queue or DelayQueue()

        board_px = 8 * int(square_size)
        ox, oy = int(origin[0]), int(origin[1])
        self.root = Node("page", "page", rect=(0, 0, ox * 2 + board_px, oy + board_px + ox))

        # ----- Rendering -----
        self.renderer = BoardRenderer(self.root, origin=(ox, oy), square_size=square_size, textures=textures)
        self.hud = HudView(self.root, rect=(ox, oy - 56, board_px, 48))
        cx = ox + board_px // 2
        cy = oy + board_px // 2
        self.prompt = PromotionOverlay(self.root, rect=(cx - 130, cy - 90, 260, 180))
        self.popup = GameOverPopup(self.root, rect=(cx - 170, cy - 60, 340, 120))

        # ----- Move flow -----
        self.sync = BoardSync(self.engine, self.renderer, self.popup, self.hud)
        self.computer_loop = ComputerMoveLoop(
            self.engine, self.sync, self.delay_queue.delay, delay_s=computer_delay_s,
        )
        self.dispatcher = MoveDispatcher(self.engine, self.sync, self.computer_loop)
        self.promotion = PromotionInteraction(self.dispatcher, self.prompt)
        self.controller = DragDropController(self.renderer, self.promotion)

        self._pointer = (0, 0)
        self.sync.refresh()

    # --------------------------------------------------
    # Game lifecycle
    # --------------------------------------------------
    def reset(self, fen: str | None = None, *, white: int = HUMAN, black: int = HUMAN) -> None:
        """
        Back to the start position (or `fen`) with the given player flags.

        reset_board() also clears the player flags, so set_players() always runs after
        it; a computer loop from before the reset is cancelled and cannot apply a move.
        """
        self.computer_loop.cancel()
        self.controller.cancel_drag()
        self.promotion.clear()
        self.popup.close()

        self.engine.reset_board()
        if fen:
            self.engine.set_board(fen)
        self.engine.set_players(white, black)

        self.sync.refresh()
        if self.sync.announce_game_over():
            return
        if self.engine.is_computer_move():
            self.computer_loop.start()

    def stop(self) -> None:
        self.computer_loop.cancel()
        self.delay_queue.cancel_all()

    # --------------------------------------------------
    # Frame loop hooks
    # --------------------------------------------------
    def update(self, now: float | None = None) -> int:
        return self.delay_queue.run_pending(now)

    def draw(self, surface) -> None:
        self.root.draw(surface)

        dragged = self.controller.dragged
        if dragged is not None:
            img = dragged.texture()
            if img is not None:
                ghost = img.copy()
                ghost.set_alpha(GHOST_ALPHA)
                surface.blit(ghost, ghost.get_rect(center=self._pointer))

    # --------------------------------------------------
    # Input
    # --------------------------------------------------
    @staticmethod
    def _handler_for(node, attr: str):
        while node is not None:
            fn = getattr(node, attr, None)
            if fn is not None:
                return fn
            node = node.parent
        return None

    def pointer_down(self, pos) -> None:
        self._pointer = pos
        hit = self.root.hit_test(pos)
        if hit is None:
            return

        click = self._handler_for(hit, "on_click")
        if click is not None:
            click()
            return

        if hit.draggable and hit.on_drag_start is not None:
            hit.on_drag_start(hit)

    def pointer_move(self, pos) -> bool:
        self._pointer = pos
        if not self.controller.dragging:
            return False
        hit = self.root.hit_test(pos)
        over = self._handler_for(hit, "on_drag_over")
        return bool(over(hit)) if over is not None else False

    def pointer_up(self, pos) -> None:
        self._pointer = pos
        if not self.controller.dragging:
            return
        hit = self.root.hit_test(pos)
        drop = self._handler_for(hit, "on_drop")
        if drop is None:
            self.controller.cancel_drag()
            return
        drop(hit)

    def handle_event(self, event) -> None:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.pointer_down(event.pos)
        elif event.type == pygame.MOUSEMOTION:
            self.pointer_move(event.pos)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.pointer_up(event.pos)
