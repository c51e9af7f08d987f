from dataclasses import dataclass, replace
from typing import Tuple

from battery.errors import ConfigError
from battery.timing import FRAME_MS


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


@dataclass(frozen=True)
class WindowConfig:
    width: int = 1280
    height: int = 720
    fps: int = 60
    title: str = "Cognitive Tasks"
    fullscreen: bool = True
    vsync: bool = True


@dataclass(frozen=True)
class TimingConfig:
    frame_ms: float = FRAME_MS
    # запас сверх ожидаемой длительности кадров, после которого дисплей считаем зависшим
    watchdog_ms: float = 1000.0

    def validate(self) -> None:
        _require(self.frame_ms > 0, f"frame_ms must be positive, got {self.frame_ms}")
        _require(self.watchdog_ms >= 0, f"watchdog_ms must be >= 0, got {self.watchdog_ms}")


@dataclass(frozen=True)
class InspectionTimeConfig:
    left_key: str = "f"
    right_key: str = "j"
    practice_trials: int = 7
    test_trials: int = 35

    fixation_ms: int = 250
    pre_mask_ms: int = 100
    mask_total_ms: int = 650
    mask_phases: int = 8
    response_max_ms: int = 6000
    feedback_ms: int = 650
    iti_ms: int = 220

    exposure_start_practice_ms: float = 220.0
    exposure_start_test_ms: float = 220.0
    exposure_min_ms: float = FRAME_MS
    exposure_max_ms: float = 600.0
    step_down_ms: float = 10.0
    step_up_ms: float = 10.0

    base_len: int = 120
    delta_len: int = 10
    jitter_len: int = 8

    def validate(self) -> None:
        _require(self.practice_trials >= 0 and self.test_trials >= 0, "trial counts must be >= 0")
        _require(self.left_key != self.right_key, "left_key and right_key must differ")
        _require(
            0 <= self.exposure_min_ms <= self.exposure_max_ms,
            f"bad exposure range [{self.exposure_min_ms}, {self.exposure_max_ms}]",
        )
        _require(self.step_down_ms >= 0 and self.step_up_ms >= 0, "staircase steps must be >= 0")
        for start in (self.exposure_start_practice_ms, self.exposure_start_test_ms):
            _require(
                self.exposure_min_ms <= start <= self.exposure_max_ms,
                f"start exposure {start} outside [{self.exposure_min_ms}, {self.exposure_max_ms}]",
            )
        _require(self.mask_phases >= 1, "mask_phases must be >= 1")
        _require(self.mask_total_ms >= self.mask_phases, "mask_total_ms too short for mask_phases")
        _require(self.response_max_ms > 0, "response_max_ms must be positive")
        _require(self.base_len - self.jitter_len > 0, "line length must stay positive")


@dataclass(frozen=True)
class DigitSpanConfig:
    practice_spans: Tuple[int, ...] = (3, 4, 4)
    digit_ms: int = 900
    gap_ms: int = 250
    start_span: int = 3
    max_span: int = 12
    trials_per_span: int = 2
    response_max_ms: int = 60_000
    feedback_ms: int = 650
    practice_iti_ms: int = 350
    test_iti_ms: int = 250

    def validate(self) -> None:
        _require(self.trials_per_span >= 1, f"trials_per_span must be >= 1, got {self.trials_per_span}")
        _require(self.start_span >= 1, f"start_span must be >= 1, got {self.start_span}")
        _require(self.max_span >= self.start_span, "max_span must be >= start_span")
        _require(all(s >= 1 for s in self.practice_spans), "practice spans must be >= 1")
        _require(self.response_max_ms > 0, "response_max_ms must be positive")


@dataclass(frozen=True)
class FlankerConfig:
    left_key: str = "f"
    right_key: str = "j"
    practice_trials: int = 7
    test_trials: int = 25
    fixation_ms: int = 400
    iti_ms: int = 600
    max_rt_ms: int = 2500
    feedback_ms: int = 500
    flankers: int = 2

    def validate(self) -> None:
        _require(self.practice_trials >= 0 and self.test_trials >= 0, "trial counts must be >= 0")
        _require(self.left_key != self.right_key, "left_key and right_key must differ")
        _require(self.max_rt_ms > 0, "max_rt_ms must be positive")
        _require(self.flankers >= 0, "flankers must be >= 0")


@dataclass(frozen=True)
class SessionConfig:
    seed: int = 1
    tasks: Tuple[str, ...] = ("inspection_time", "digit_span", "flanker")
    events_path: str = "data/events.jsonl"
    intro_enabled: bool = True


@dataclass(frozen=True)
class BatteryConfig:
    window: WindowConfig = WindowConfig()
    timing: TimingConfig = TimingConfig()
    inspection_time: InspectionTimeConfig = InspectionTimeConfig()
    digit_span: DigitSpanConfig = DigitSpanConfig()
    flanker: FlankerConfig = FlankerConfig()
    session: SessionConfig = SessionConfig()


def quick(cfg: BatteryConfig) -> BatteryConfig:
    # Короткий прогон для проверки установки: по паре проб на блок.
    return replace(
        cfg,
        inspection_time=replace(cfg.inspection_time, practice_trials=2, test_trials=4),
        digit_span=replace(cfg.digit_span, practice_spans=(3,), max_span=4),
        flanker=replace(cfg.flanker, practice_trials=2, test_trials=4),
    )
