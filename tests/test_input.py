import pygame
import pytest

from battery.input import normalize_key_event
from battery.response import BACKSPACE, ENTER


def _keydown(key, unicode=""):
    return pygame.event.Event(pygame.KEYDOWN, key=key, unicode=unicode)


class TestNormalizeKeyEvent:
    @pytest.mark.parametrize(
        "key, token",
        [
            (pygame.K_f, "f"),
            (pygame.K_j, "j"),
            (pygame.K_7, "7"),
            (pygame.K_KP3, "3"),
            (pygame.K_RETURN, ENTER),
            (pygame.K_KP_ENTER, ENTER),
            (pygame.K_BACKSPACE, BACKSPACE),
            (pygame.K_SPACE, "space"),
        ],
    )
    def test_known_keys(self, key, token):
        assert normalize_key_event(_keydown(key)) == token

    def test_cyrillic_layout_maps_to_response_keys(self):
        # physical F and J keys on a Russian layout
        assert normalize_key_event(_keydown(0, "а")) == "f"
        assert normalize_key_event(_keydown(0, "О")) == "j"

    def test_unknown_key(self):
        assert normalize_key_event(_keydown(pygame.K_F1)) is None

    def test_keyup_is_not_a_token(self):
        assert normalize_key_event(pygame.event.Event(pygame.KEYUP, key=pygame.K_f)) is None
