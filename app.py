import argparse
import logging

import pygame

from chess_game import DEFAULT_AI_LEVEL
from game_view import GameView, window_size

FPS = 60
WINDOW_TITLE = "Chess Board"


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Drag-and-drop chess board")
    p.add_argument("--level", type=int, default=DEFAULT_AI_LEVEL, help="computer strength 1..5")
    p.add_argument("--book", default=None, help="PGN file used as an opening book")
    p.add_argument("--delay", type=float, default=0.3, help="seconds between computer plies")
    p.add_argument("--log-level", default="INFO")
    return p.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pygame.init()
    try:
        screen = pygame.display.set_mode(window_size())
        pygame.display.set_caption(WINDOW_TITLE)
        clock = pygame.time.Clock()

        view = GameView(ai_level=args.level, book_path=args.book, computer_delay_s=args.delay)

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    break
                view.handle_event(event)

            view.update()
            view.draw(screen)
            pygame.display.flip()
            clock.tick(FPS)

        view.close()
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
