import string
from typing import List, Optional, Set

import pygame

from battery.errors import SessionAborted
from battery.response import BACKSPACE, ENTER, EventSource, InputEvent

KEY_TOKENS = {getattr(pygame, f"K_{c}"): c for c in string.ascii_lowercase}
KEY_TOKENS.update({getattr(pygame, f"K_{d}"): d for d in string.digits})
KEY_TOKENS.update({getattr(pygame, f"K_KP{d}"): d for d in string.digits})
KEY_TOKENS.update(
    {
        pygame.K_RETURN: ENTER,
        pygame.K_KP_ENTER: ENTER,
        pygame.K_BACKSPACE: BACKSPACE,
        pygame.K_SPACE: "space",
    }
)

# Русская раскладка: на клавишах F и J печатаются «а» и «о»
LAYOUT_CHARS = {"а": "f", "о": "j"}


def normalize_key_event(event: pygame.event.Event) -> Optional[str]:
    if event.type != pygame.KEYDOWN:
        return None
    token = KEY_TOKENS.get(event.key)
    if token is not None:
        return token
    char = (getattr(event, "unicode", "") or "").lower()
    if char in LAYOUT_CHARS:
        return LAYOUT_CHARS[char]
    if len(char) == 1 and (char in string.ascii_lowercase or char in string.digits):
        return char
    return None


class PygameEventSource(EventSource):
    """
    Превращает очередь pygame в InputEvent.

    У KEYDOWN в pygame нет флага автоповтора, поэтому держим набор нажатых
    клавиш: повторный KEYDOWN без KEYUP считается repeat.
    QUIT и ESC прерывают сессию.
    """

    def __init__(self) -> None:
        self._held: Set[int] = set()

    def poll(self) -> List[InputEvent]:
        now_ms = float(pygame.time.get_ticks())
        events: List[InputEvent] = []
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                raise SessionAborted("window closed")
            if event.type == pygame.KEYUP:
                self._held.discard(event.key)
                continue
            if event.type != pygame.KEYDOWN:
                continue
            if event.key == pygame.K_ESCAPE:
                raise SessionAborted("escape pressed")
            repeat = event.key in self._held
            self._held.add(event.key)
            token = normalize_key_event(event)
            if token is None:
                continue
            events.append(InputEvent(token=token, repeat=repeat, timestamp_ms=now_ms))
        return events
