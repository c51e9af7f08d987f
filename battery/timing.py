import logging
import math
from typing import Optional

from battery.errors import ConfigError, RendererStalledError

logger = logging.getLogger(__name__)

# Номинальный период кадра при 60 Гц. Реальный дисплей может отличаться.
FRAME_MS = 1000 / 60

# Погрешность float: 13 * (1000/60) / (1000/60) может дать 12.999999...
_FRAME_EPS = 1e-6


def ms_to_frames(ms: float, frame_ms: float = FRAME_MS) -> int:
    """Сколько целых кадров помещается в ms (вниз), минимум один кадр."""
    if frame_ms <= 0:
        raise ConfigError(f"frame_ms must be positive, got {frame_ms}")
    return max(1, int(math.floor(ms / frame_ms + _FRAME_EPS)))


def quantize_to_frames(ms: float, frame_ms: float = FRAME_MS) -> float:
    """
    Округляет длительность вниз до кратного периоду кадра (не меньше одного кадра).

    Единственная точка перевода логического значения лестницы (мс)
    в то, что реально будет показано на экране.
    """
    return ms_to_frames(ms, frame_ms) * frame_ms


class Clock:
    """
    Источник времени для движка.

    - now_ms(): монотонное время в мс
    - idle(): короткая пауза между опросами ввода
    - wait_frame(): ждать следующего обновления экрана
    """

    def now_ms(self) -> float:
        raise NotImplementedError

    def idle(self) -> None:
        raise NotImplementedError

    def wait_frame(self) -> None:
        raise NotImplementedError

    def begin_frames(self) -> None:
        return None


class CancellableTimer:
    """Явный таймер с дедлайном; timeout_ms=None: не истекает никогда."""

    def __init__(self, clock: Clock, timeout_ms: Optional[float]) -> None:
        if timeout_ms is not None and timeout_ms < 0:
            raise ConfigError(f"timeout_ms must be >= 0, got {timeout_ms}")
        self.clock = clock
        self.armed_at_ms = clock.now_ms()
        self.deadline_ms = None if timeout_ms is None else self.armed_at_ms + timeout_ms
        self.cancelled = False

    @property
    def expired(self) -> bool:
        if self.cancelled or self.deadline_ms is None:
            return False
        return self.clock.now_ms() >= self.deadline_ms

    def remaining_ms(self) -> Optional[float]:
        if self.deadline_ms is None:
            return None
        return max(0.0, self.deadline_ms - self.clock.now_ms())

    def cancel(self) -> None:
        self.cancelled = True


class Timing:
    """
    Точки ожидания движка: delay(ms) и delay_frames(n).

    Пока ждём, прокачиваем канал ввода, чтобы окно не «зависало»
    и закрытие окна сразу прерывало сессию.
    """

    def __init__(
        self,
        clock: Clock,
        channel=None,
        frame_ms: float = FRAME_MS,
        watchdog_ms: float = 1000.0,
    ) -> None:
        if frame_ms <= 0:
            raise ConfigError(f"frame_ms must be positive, got {frame_ms}")
        self.clock = clock
        self.channel = channel
        self.frame_ms = frame_ms
        self.watchdog_ms = watchdog_ms

    def now_ms(self) -> float:
        return self.clock.now_ms()

    def pump(self) -> None:
        if self.channel is not None:
            self.channel.pump()

    def delay(self, ms: float) -> None:
        if ms <= 0:
            return
        deadline = self.clock.now_ms() + ms
        while self.clock.now_ms() < deadline:
            self.clock.idle()
            self.pump()

    def delay_frames(self, n: int) -> None:
        if n <= 0:
            return
        budget_ms = n * self.frame_ms + self.watchdog_ms
        started = self.clock.now_ms()
        self.clock.begin_frames()
        for _ in range(n):
            self.clock.wait_frame()
            self.pump()
            elapsed = self.clock.now_ms() - started
            if elapsed > budget_ms:
                logger.error("Display stalled: %d frames took %.1f ms", n, elapsed)
                raise RendererStalledError(
                    f"{n} frames did not complete within {budget_ms:.0f} ms (took {elapsed:.0f} ms)"
                )
