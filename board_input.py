# board_input.py
import logging
from dataclasses import dataclass

from position_codec import is_piece_identity
from scene_nodes import PieceNode, SquareNode

_log = logging.getLogger(__name__)

NO_PROMOTION = 0
PROMOTION_CODES = {"queen": 1, "rook": 2, "bishop": 3, "knight": 4}

WHITE_PAWN = "wP"
BLACK_PAWN = "bP"
CLEARED = ("--", "--")


def promotion_code(selection) -> int:
    """'Queen' -> 1 ... 'Knight' -> 4; anything else -> 0 (no promotion)."""
    return PROMOTION_CODES.get(str(selection or "").strip().lower(), NO_PROMOTION)


def is_promotion_drop(identity: str, dest: str) -> bool:
    """Pawn identity dropped on its far rank (8 for white, 1 for black)."""
    if WHITE_PAWN in identity:
        return dest[-1] == "8"
    if BLACK_PAWN in identity:
        return dest[-1] == "1"
    return False


def is_capture_target(node_id: str) -> bool:
    """A drop on a piece visual (identity-shaped id) rather than on a bare square."""
    return is_piece_identity(node_id)


@dataclass(frozen=True)
class DropIntent:
    source: str
    dest: str
    capture: bool


# ---------------------------------------------------
# Promotion
# ---------------------------------------------------
class PromotionInteraction:
    """
    Idle -> AwaitingChoice when a pawn is dropped on its last rank and the dispatcher
    would accept the move; the move waits for the prompt. Submitting a choice forwards
    (source, dest, code) and returns to Idle.
    Every other drop goes straight to the dispatcher with code 0.
    """

    IDLE = "Idle"
    AWAITING_CHOICE = "AwaitingChoice"

    def __init__(self, dispatcher, prompt):
        self.dispatcher = dispatcher
        self.prompt = prompt
        prompt.on_submit = self.submit

        self.state = self.IDLE
        self.pending = CLEARED

    @property
    def awaiting(self) -> bool:
        return self.state == self.AWAITING_CHOICE

    def handle_drop(self, identity: str, source: str, dest: str) -> bool:
        if self.awaiting:
            return False

        if is_promotion_drop(identity, dest):
            # No prompt for a move the dispatcher would refuse anyway
            if not self.dispatcher.can_move(source, dest):
                return False
            self.state = self.AWAITING_CHOICE
            self.pending = (source, dest)
            self.prompt.show()
            return False

        return self.dispatcher.attempt_move(source, dest, NO_PROMOTION)

    def submit(self, selection) -> bool:
        if not self.awaiting:
            return False

        source, dest = self.pending
        try:
            return self.dispatcher.attempt_move(source, dest, promotion_code(selection))
        finally:
            self.clear()

    def clear(self) -> None:
        self.pending = CLEARED
        self.state = self.IDLE
        self.prompt.clear()


# ---------------------------------------------------
# Drag and drop
# ---------------------------------------------------
class DragDropController:
    """
    Turns drag gestures on the rendered board into (source, dest) move intents.

    Legality is not judged here: every square accepts drag-over, and the intent is
    handed to the promotion check which forwards it to the dispatcher.
    """

    def __init__(self, renderer, promotion: PromotionInteraction):
        self.renderer = renderer
        self.promotion = promotion

        self.payload: str | None = None
        self.dragged: PieceNode | None = None

        renderer.on_drag_start = self.drag_start
        for node in renderer.square_nodes.values():
            node.on_drag_over = self.drag_over
            node.on_drop = self.drop

    @property
    def dragging(self) -> bool:
        return self.payload is not None

    def drag_start(self, piece: PieceNode) -> None:
        if self.promotion.awaiting:
            return
        self.payload = piece.id
        self.dragged = piece

    def drag_over(self, target) -> bool:
        return True

    def cancel_drag(self) -> None:
        self.payload = None
        self.dragged = None

    def resolve(self, target) -> DropIntent | None:
        """Source/destination squares for a drop on `target`, or None for a no-op."""
        dragged = self.dragged
        if dragged is None or dragged.id != self.payload:
            return None

        source = self.renderer.square_of(dragged)
        if source is None:
            # Board was re-rendered under the drag
            return None

        if isinstance(target, PieceNode):
            if target is dragged:
                return None
            dest = self.renderer.square_of(target)
        elif isinstance(target, SquareNode):
            dest = target.id
        else:
            return None

        if dest is None or dest == source:
            return None

        return DropIntent(source, dest, capture=self.renderer.piece_on(dest) is not None)

    def drop(self, target) -> DropIntent | None:
        identity = self.payload
        try:
            intent = self.resolve(target)
        finally:
            self.cancel_drag()

        if intent is None:
            return None

        _log.debug("Drop %s: %s -> %s%s", identity, intent.source, intent.dest, " (capture)" if intent.capture else "")
        self.promotion.handle_drop(identity, intent.source, intent.dest)
        return intent
