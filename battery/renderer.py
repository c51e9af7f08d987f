import random
from typing import Tuple

import pygame

from battery.display import Display
from battery.stimuli import (
    LEFT,
    ArrowRow,
    Blank,
    Digit,
    Feedback,
    Fixation,
    LineMask,
    LinePair,
    Message,
    ResponsePrompt,
    TypedEntry,
)
from battery.timing import Timing


class PygameRenderer(Display):
    """
    PygameRenderer отвечает ТОЛЬКО за рисование.
    Он не считает RT, не решает правильность, не управляет фазами.
    Ему дают описание стимула, он его рисует и выводит кадр.
    """

    # Геометрия «холста» для линий, 220x220
    CANVAS = 220
    X_LEFT = 80
    X_RIGHT = 140
    LINE_THICKNESS = 6

    def __init__(self, screen: pygame.Surface, timing: Timing) -> None:
        super().__init__(timing)
        self.screen = screen
        self.w, self.h = screen.get_size()
        self.center = (self.w // 2, self.h // 2)

        self.font_huge = pygame.font.SysFont(None, 96)
        self.font_big = pygame.font.SysFont(None, 72)
        self.font_mid = pygame.font.SysFont(None, 42)
        self.font_small = pygame.font.SysFont(None, 28)

        self.bg_color = (15, 17, 21)
        self.ui_color = (230, 230, 230)
        self.muted_color = (184, 184, 184)
        self.line_color = (232, 232, 232)
        self.ok_color = (134, 239, 172)
        self.bad_color = (252, 165, 165)

        self._handlers = {
            Fixation: self._draw_fixation,
            Blank: lambda d: None,
            LinePair: self._draw_line_pair,
            LineMask: self._draw_line_mask,
            ResponsePrompt: self._draw_prompt,
            Digit: self._draw_digit,
            TypedEntry: self._draw_typed_entry,
            ArrowRow: self._draw_arrow_row,
            Feedback: self._draw_feedback,
            Message: self._draw_message,
        }

    def draw(self, descriptor) -> None:
        handler = self._handlers.get(type(descriptor))
        if handler is None:
            raise ValueError(f"Unsupported stimulus: {type(descriptor).__name__}")
        self.screen.fill(self.bg_color)
        handler(descriptor)
        pygame.display.flip()

    # -----------------------
    # Рисование элементов
    # -----------------------

    def _text(self, font, text: str, color, center: Tuple[int, int]) -> None:
        surf = font.render(text, True, color)
        self.screen.blit(surf, surf.get_rect(center=center))

    def _canvas_rect(self) -> pygame.Rect:
        rect = pygame.Rect(0, 0, self.CANVAS, self.CANVAS)
        rect.center = self.center
        return rect

    def _draw_fixation(self, d: Fixation) -> None:
        self._text(self.font_big, d.symbol, self.ui_color, self.center)

    def _draw_line_pair(self, d: LinePair) -> None:
        rect = self._canvas_rect()
        cy = rect.centery
        for x, length in ((rect.x + self.X_LEFT, d.left_len), (rect.x + self.X_RIGHT, d.right_len)):
            pygame.draw.line(
                self.screen,
                self.line_color,
                (x, cy - length // 2),
                (x, cy + length // 2),
                self.LINE_THICKNESS,
            )

    def _draw_line_mask(self, d: LineMask) -> None:
        rng = random.Random(d.seed)
        rect = self._canvas_rect()
        for _ in range(d.n_lines):
            color = (255, 255, 255) if rng.random() < 0.5 else (0, 0, 0)
            start = (rect.x + rng.randint(0, rect.width), rect.y + rng.randint(0, rect.height))
            end = (rect.x + rng.randint(0, rect.width), rect.y + rng.randint(0, rect.height))
            pygame.draw.line(self.screen, color, start, end, rng.randint(2, 7))

    def _draw_prompt(self, d: ResponsePrompt) -> None:
        cx, cy = self.center
        self._text(self.font_mid, d.title, self.ui_color, (cx, int(self.h * 0.22)))
        if d.subtitle:
            self._text(self.font_small, d.subtitle, self.muted_color, (cx, int(self.h * 0.22) + 40))
        if d.hint:
            self._text(self.font_small, d.hint, self.muted_color, (cx, int(self.h * 0.22) + 80))
        self._text(self.font_big, "+", self.ui_color, (cx, cy + 40))

    def _draw_digit(self, d: Digit) -> None:
        self._text(self.font_huge, str(d.value), self.ui_color, self.center)

    def _draw_typed_entry(self, d: TypedEntry) -> None:
        cx, cy = self.center
        self._text(self.font_mid, "Response", self.ui_color, (cx, cy - 110))
        self._text(self.font_small, d.prompt, self.muted_color, (cx, cy - 65))
        box = pygame.Rect(0, 0, 260, 56)
        box.center = (cx, cy)
        pygame.draw.rect(self.screen, (40, 42, 48), box, border_radius=10)
        pygame.draw.rect(self.screen, (90, 92, 98), box, width=1, border_radius=10)
        self._text(self.font_mid, d.typed, self.ui_color, box.center)
        self._text(self.font_small, f"(Digits only, max {d.max_len}; ENTER to submit)", self.muted_color, (cx, cy + 60))

    def _draw_arrow_row(self, d: ArrowRow) -> None:
        size = 52
        gap = 6
        arrows = d.arrows
        total_w = len(arrows) * size + (len(arrows) - 1) * gap
        x0 = self.center[0] - total_w // 2
        cy = self.center[1]
        target_i = len(arrows) // 2
        for i, direction in enumerate(arrows):
            rect = pygame.Rect(x0 + i * (size + gap), cy - size // 2, size, size)
            self._draw_arrow(rect, direction)
            if i == target_i:
                pygame.draw.line(
                    self.screen, self.ui_color, (rect.left, rect.bottom + 6), (rect.right, rect.bottom + 6), 3
                )

    def _draw_arrow(self, rect: pygame.Rect, direction: str) -> None:
        # стрелка = древко + треугольный наконечник
        cy = rect.centery
        shaft_h = max(4, rect.height // 8)
        head_w = rect.width // 2
        if direction == LEFT:
            head = [(rect.left, cy), (rect.left + head_w, rect.top + 6), (rect.left + head_w, rect.bottom - 6)]
            shaft = pygame.Rect(rect.left + head_w, cy - shaft_h // 2, rect.width - head_w, shaft_h)
        else:
            head = [(rect.right, cy), (rect.right - head_w, rect.top + 6), (rect.right - head_w, rect.bottom - 6)]
            shaft = pygame.Rect(rect.left, cy - shaft_h // 2, rect.width - head_w, shaft_h)
        pygame.draw.polygon(self.screen, self.ui_color, head)
        pygame.draw.rect(self.screen, self.ui_color, shaft)

    def _draw_feedback(self, d: Feedback) -> None:
        color = self.ok_color if d.correct else self.bad_color
        self._text(self.font_mid, d.text, color, self.center)

    def _draw_message(self, d: Message) -> None:
        cx = self.center[0]
        y = int(self.h * 0.2)
        self._text(self.font_big, d.title, self.ui_color, (cx, y))
        y += 80
        for line in d.lines:
            if line:
                self._text(self.font_small, line, self.muted_color, (cx, y))
            y += 34
