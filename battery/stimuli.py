"""
Декларативные описания стимулов.

Движок никогда не смотрит на пиксели, только на эти описания.
Рисует их Display (см. battery/display.py и battery/renderer.py).
"""
from dataclasses import asdict, dataclass, field
from typing import Tuple

LEFT = "left"
RIGHT = "right"
CONGRUENT = "congruent"
INCONGRUENT = "incongruent"


@dataclass(frozen=True)
class Fixation:
    symbol: str = "+"


@dataclass(frozen=True)
class Blank:
    pass


@dataclass(frozen=True)
class LinePair:
    left_len: int
    right_len: int


@dataclass(frozen=True)
class LineMask:
    # seed, чтобы маска была воспроизводимой при том же seed сессии
    seed: int
    n_lines: int = 70


@dataclass(frozen=True)
class ResponsePrompt:
    title: str
    subtitle: str = ""
    hint: str = ""


@dataclass(frozen=True)
class Digit:
    value: int


@dataclass(frozen=True)
class DigitSequence:
    digits: str


@dataclass(frozen=True)
class TypedEntry:
    prompt: str
    typed: str
    max_len: int


@dataclass(frozen=True)
class ArrowRow:
    target_dir: str
    flank_dir: str
    flankers: int = 2

    @property
    def arrows(self) -> Tuple[str, ...]:
        side = (self.flank_dir,) * self.flankers
        return side + (self.target_dir,) + side

    def as_text(self) -> str:
        glyph = {LEFT: "<", RIGHT: ">"}
        return "".join(glyph[d] for d in self.arrows)


@dataclass(frozen=True)
class Feedback:
    correct: bool

    @property
    def text(self) -> str:
        return "Correct" if self.correct else "Incorrect"


@dataclass(frozen=True)
class Message:
    title: str
    lines: Tuple[str, ...] = field(default_factory=tuple)


def describe(descriptor) -> dict:
    """Описание стимула для лога: имя типа + поля."""
    payload = asdict(descriptor)
    payload["kind"] = type(descriptor).__name__
    return payload
