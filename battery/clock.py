import pygame

from battery.timing import Clock


class PygameClock(Clock):
    """
    Время из pygame.time.

    Кадры отсчитываются pygame.time.Clock с целевым fps, экран при этом
    не перерисовывается: стимул остаётся тем, что нарисовал Display.draw().
    """

    def __init__(self, fps: int = 60) -> None:
        self.fps = fps
        self._frame_clock = pygame.time.Clock()

    def now_ms(self) -> float:
        return float(pygame.time.get_ticks())

    def idle(self) -> None:
        pygame.time.wait(1)

    def begin_frames(self) -> None:
        # первый tick() только запоминает момент, иначе первый кадр был бы нулевым
        self._frame_clock.tick()

    def wait_frame(self) -> None:
        self._frame_clock.tick(self.fps)
