"""
Захват ответа участника.

Канал ввода (InputChannel) раздаёт события подпискам. Подписка живёт ровно
столько, сколько длится один вызов await_response(): её открываем перед
ожиданием и закрываем в finally вместе с таймером, так что ни поздняя клавиша,
ни поздний таймер не могут «ответить» второй раз.
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from battery.errors import ConfigError
from battery.stimuli import TypedEntry
from battery.timing import CancellableTimer, Timing

logger = logging.getLogger(__name__)

ENTER = "enter"
BACKSPACE = "backspace"
DIGIT_TOKENS = frozenset("0123456789")


@dataclass(frozen=True)
class InputEvent:
    token: str
    repeat: bool = False
    timestamp_ms: float = 0.0


@dataclass(frozen=True)
class Response:
    """Итог ожидания: token=None означает таймаут."""

    token: Optional[str]
    rt_ms: Optional[float]
    timestamp_ms: float

    @property
    def is_timeout(self) -> bool:
        return self.token is None


class EventSource:
    def poll(self) -> List[InputEvent]:
        raise NotImplementedError


class Subscription:
    def __init__(self, channel: "InputChannel", accepts: Callable[[InputEvent], bool]) -> None:
        self.channel = channel
        self.accepts = accepts
        self.events: deque = deque()
        self.closed = False

    @property
    def first(self) -> Optional[InputEvent]:
        return self.events[0] if self.events else None

    def offer(self, event: InputEvent) -> None:
        # принятые события копятся по порядку, ни одно не теряется
        if self.closed:
            return
        if self.accepts(event):
            self.events.append(event)

    def take(self) -> Optional[InputEvent]:
        return self.events.popleft() if self.events else None

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.channel._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class InputChannel:
    """
    Единственный канал событий ввода.

    Событие, пришедшее когда подписчиков нет, просто теряется:
    нажатия до начала окна ответа не засчитываются.
    """

    def __init__(self, source: Optional[EventSource] = None) -> None:
        self.source = source
        self._subscriptions: List[Subscription] = []

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscriptions)

    def subscribe(self, accepts: Callable[[InputEvent], bool]) -> Subscription:
        sub = Subscription(self, accepts)
        self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    def pump(self) -> None:
        if self.source is None:
            return
        for event in self.source.poll():
            self.dispatch(event)

    def dispatch(self, event: InputEvent) -> None:
        for sub in list(self._subscriptions):
            sub.offer(event)


def window_filter(valid: frozenset, timer: CancellableTimer) -> Callable[[InputEvent], bool]:
    """Пропускает только не-повторы с нужным токеном, пришедшие внутри окна таймера."""
    onset_ms = timer.armed_at_ms

    def accepts(event: InputEvent) -> bool:
        if event.repeat or event.timestamp_ms < onset_ms:
            return False
        if timer.deadline_ms is not None and event.timestamp_ms > timer.deadline_ms:
            return False
        return event.token.lower() in valid

    return accepts


class ResponseCapture:
    def __init__(self, timing: Timing, channel: InputChannel) -> None:
        self.timing = timing
        self.channel = channel

    def await_response(self, valid_tokens: Iterable[str], timeout_ms: Optional[float]) -> Response:
        """
        Гонка «первое подходящее нажатие» против таймера.

        RT считается от момента взвода таймера (onset) по времени события.
        timeout_ms=None: ждём без ограничения (для экранов «нажми пробел»).
        """
        valid = frozenset(t.lower() for t in valid_tokens)
        if not valid:
            raise ConfigError("await_response needs at least one valid token")

        clock = self.timing.clock
        timer = CancellableTimer(clock, timeout_ms)
        onset_ms = timer.armed_at_ms

        subscription = self.channel.subscribe(window_filter(valid, timer))
        try:
            while True:
                self.channel.pump()
                event = subscription.first
                if event is not None:
                    rt_ms = max(0.0, event.timestamp_ms - onset_ms)
                    return Response(token=event.token.lower(), rt_ms=rt_ms, timestamp_ms=event.timestamp_ms)
                if timer.expired:
                    return Response(token=None, rt_ms=None, timestamp_ms=clock.now_ms())
                clock.idle()
        finally:
            subscription.close()
            timer.cancel()


def collect_typed_response(
    capture: ResponseCapture,
    display,
    prompt: str,
    max_len: int,
    timeout_ms: Optional[float],
) -> Response:
    """
    Набор цифр с клавиатуры: цифры и backspace, enter отправляет.

    Одна подписка на весь ввод: все нажатия, пришедшие одной пачкой,
    разбираются по порядку. Время реакции здесь не измеряется (rt_ms=None).
    """
    clock = capture.timing.clock
    typed = ""
    timer = CancellableTimer(clock, timeout_ms)
    tokens = DIGIT_TOKENS | {ENTER, BACKSPACE}
    display.draw(TypedEntry(prompt=prompt, typed=typed, max_len=max_len))
    subscription = capture.channel.subscribe(window_filter(tokens, timer))
    try:
        while True:
            capture.channel.pump()
            changed = False
            event = subscription.take()
            while event is not None:
                token = event.token.lower()
                if token == ENTER:
                    return Response(token=typed, rt_ms=None, timestamp_ms=event.timestamp_ms)
                if token == BACKSPACE:
                    typed = typed[:-1]
                elif len(typed) < max_len:
                    typed += token
                changed = True
                event = subscription.take()
            if changed:
                display.draw(TypedEntry(prompt=prompt, typed=typed, max_len=max_len))
            if timer.expired:
                return Response(token=None, rt_ms=None, timestamp_ms=clock.now_ms())
            clock.idle()
    finally:
        subscription.close()
        timer.cancel()
