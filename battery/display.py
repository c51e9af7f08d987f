from typing import Optional

from battery.errors import ConfigError
from battery.timing import Timing


class Display:
    """
    Контракт «показать стимул на время».

    Наследник реализует только draw(): нарисовать описание и вывести кадр.
    show() рисует и ждёт через Timing: либо мс, либо целое число кадров.
    """

    def __init__(self, timing: Timing) -> None:
        self.timing = timing

    def draw(self, descriptor) -> None:
        raise NotImplementedError

    def show(
        self,
        descriptor,
        duration_ms: Optional[float] = None,
        duration_frames: Optional[int] = None,
    ) -> None:
        if (duration_ms is None) == (duration_frames is None):
            raise ConfigError("show() needs exactly one of duration_ms / duration_frames")
        self.draw(descriptor)
        if duration_frames is not None:
            self.timing.delay_frames(duration_frames)
        else:
            self.timing.delay(duration_ms)
