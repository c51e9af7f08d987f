class BatteryError(Exception):
    """Базовая ошибка движка."""


class ConfigError(BatteryError, ValueError):
    """Неверная конфигурация блока/задачи. Падаем сразу, на старте блока."""


class RendererStalledError(BatteryError, RuntimeError):
    """Дисплей не отдал кадры за разумное время (сработал watchdog)."""


class SessionAborted(BatteryError):
    """Участник закрыл окно или нажал ESC."""
