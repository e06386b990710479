# scene_nodes.py
#
# Minimal retained scene graph on top of pygame sprites.
# Nodes carry a string id and a class name so board code can address squares and
# pieces the same way a page addresses elements; positions are absolute window pixels.
import heapq
import itertools
import time

import pygame

TEXT_COLOR = (34, 34, 34)


class Node(pygame.sprite.Sprite):
    def __init__(self, node_id: str = "", class_name: str = "", *, rect=(0, 0, 0, 0), z: int = 0):
        super().__init__()
        self.id = node_id
        self.class_name = class_name
        self.rect = pygame.Rect(rect)
        self.image = None
        self.z_position = z
        self.hidden = False

        self.parent: "Node | None" = None
        self.children: list["Node"] = []

        # Pointer behaviour (None = not a target)
        self.draggable = False
        self.on_drag_start = None
        self.on_drag_over = None
        self.on_drop = None
        self.on_click = None

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id!r} class={self.class_name!r}>"

    # ---- tree ----
    def add_child(self, node: "Node") -> "Node":
        if node.parent is not None:
            node.remove_from_parent()
        node.parent = self
        self.children.append(node)
        return node

    def remove_child(self, node: "Node") -> None:
        self.children.remove(node)
        node.parent = None
        node.kill()

    def remove_from_parent(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, node_id: str) -> "Node | None":
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def _ordered_children(self) -> list["Node"]:
        return sorted(self.children, key=lambda n: n.z_position)

    # ---- hit testing ----
    def hit_test(self, pos) -> "Node | None":
        """Topmost visible node containing pos (children before parents)."""
        if self.hidden:
            return None
        for child in reversed(self._ordered_children()):
            hit = child.hit_test(pos)
            if hit is not None:
                return hit
        if self.rect.collidepoint(pos):
            return self
        return None

    # ---- drawing ----
    def paint(self, surface) -> None:
        if self.image is not None:
            surface.blit(self.image, self.rect)

    def draw(self, surface) -> None:
        if self.hidden:
            return
        self.paint(surface)
        for child in self._ordered_children():
            child.draw(surface)


class SquareNode(Node):
    def __init__(self, node_id: str, class_name: str, *, rect, color, z: int = 0):
        super().__init__(node_id, class_name, rect=rect, z=z)
        self.color = color

    def paint(self, surface) -> None:
        pygame.draw.rect(surface, self.color, self.rect)


class PieceNode(Node):
    """Draggable piece visual; its image is produced lazily from its class name."""

    def __init__(self, node_id: str, class_name: str, *, texture_fn=None, z: int = 10):
        super().__init__(node_id, class_name, z=z)
        self.draggable = True
        self._texture_fn = texture_fn

    def texture(self):
        if self.image is None and self._texture_fn is not None and self.rect.w > 0:
            self.image = self._texture_fn(self.class_name, self.rect.size)
        return self.image

    def paint(self, surface) -> None:
        img = self.texture()
        if img is not None:
            surface.blit(img, self.rect)


class LabelNode(Node):
    def __init__(self, text: str = "", *, node_id: str = "", class_name: str = "label",
                 rect=(0, 0, 0, 0), font_size: int = 22, color=TEXT_COLOR, z: int = 0):
        super().__init__(node_id, class_name, rect=rect, z=z)
        self.text = text
        self.font_size = int(font_size)
        self.color = color

    def paint(self, surface) -> None:
        if not self.text:
            return
        font = pygame.font.SysFont(None, self.font_size)
        img = font.render(self.text, True, self.color)
        surface.blit(img, img.get_rect(center=self.rect.center))


class ButtonNode(LabelNode):
    def __init__(self, title: str, *, node_id: str = "", rect=(0, 0, 0, 0), action=None,
                 background=(225, 225, 225), font_size: int = 20, z: int = 0):
        super().__init__(title, node_id=node_id, class_name="button", rect=rect,
                         font_size=font_size, z=z)
        self.background = background
        self.on_click = action

    def paint(self, surface) -> None:
        pygame.draw.rect(surface, self.background, self.rect, border_radius=6)
        super().paint(surface)


class PanelNode(Node):
    def __init__(self, node_id: str = "", class_name: str = "panel", *, rect=(0, 0, 0, 0),
                 background=(140, 140, 140), z: int = 0):
        super().__init__(node_id, class_name, rect=rect, z=z)
        self.background = background

    def paint(self, surface) -> None:
        pygame.draw.rect(surface, self.background, self.rect, border_radius=8)


# ---------------------------------------------------
# Deferred calls
# ---------------------------------------------------
class DelayQueue:
    """
    Callbacks scheduled to run later from the frame loop.

    A drain only runs callbacks that were already due when it started; anything they
    schedule waits for the next drain, so chained work always yields between steps.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, object]] = []

    def __len__(self) -> int:
        return len(self._heap)

    def delay(self, fn, seconds: float = 0.0) -> None:
        due = self._clock() + max(0.0, float(seconds))
        heapq.heappush(self._heap, (due, next(self._seq), fn))

    def cancel_all(self) -> None:
        self._heap.clear()

    def run_pending(self, now: float | None = None) -> int:
        if now is None:
            now = self._clock()
        due = []
        while self._heap and self._heap[0][0] <= now:
            due.append(heapq.heappop(self._heap))
        ran = 0
        try:
            for _, _, fn in due:
                ran += 1
                fn()
        finally:
            # Callbacks behind a failing one stay queued for the next drain
            for entry in due[ran:]:
                heapq.heappush(self._heap, entry)
        return ran
