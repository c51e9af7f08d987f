import logging
from dataclasses import asdict, dataclass
from typing import Optional

from battery.errors import ConfigError
from battery.timing import FRAME_MS, ms_to_frames, quantize_to_frames

logger = logging.getLogger(__name__)


@dataclass
class SpanState:
    current_span: int
    max_span_achieved: int
    correct_count_at_current_span: int = 0
    trials_at_current_span: int = 0


class AscendingSpanStaircase:
    """
    Восходящая лестница для digit span.

    На каждом уровне ровно trials_per_span попыток. Хотя бы одна верная:
    уровень засчитан, идём на s+1. Ни одной: стоп.
    """

    def __init__(self, start_span: int, max_span_limit: int, trials_per_span: int) -> None:
        if trials_per_span < 1:
            raise ConfigError(f"trials_per_span must be >= 1, got {trials_per_span}")
        if start_span < 1:
            raise ConfigError(f"start_span must be >= 1, got {start_span}")
        if max_span_limit < start_span:
            raise ConfigError(f"max_span_limit ({max_span_limit}) < start_span ({start_span})")
        self.start_span = start_span
        self.max_span_limit = max_span_limit
        self.trials_per_span = trials_per_span
        self.state = SpanState(current_span=start_span, max_span_achieved=start_span - 1)
        self.finished = False
        self.stop_reason: Optional[str] = None

    @property
    def value(self) -> int:
        return self.state.current_span

    @property
    def planned_trials(self) -> int:
        return (self.max_span_limit - self.start_span + 1) * self.trials_per_span

    def update(self, correct: bool) -> None:
        if self.finished:
            raise RuntimeError("staircase already finished")
        st = self.state
        st.trials_at_current_span += 1
        if correct:
            st.correct_count_at_current_span += 1
        if st.trials_at_current_span < self.trials_per_span:
            return

        if st.correct_count_at_current_span >= 1:
            st.max_span_achieved = max(st.max_span_achieved, st.current_span)
            st.current_span += 1
            st.correct_count_at_current_span = 0
            st.trials_at_current_span = 0
            logger.debug("span passed, next span %d", st.current_span)
            if st.current_span > self.max_span_limit:
                self._stop(f"Reached max span limit ({self.max_span_limit})")
        else:
            self._stop(f"0/{self.trials_per_span} at span {st.current_span}")

    def _stop(self, reason: str) -> None:
        self.finished = True
        self.stop_reason = reason
        logger.info("span staircase stopped: %s (max span %d)", reason, self.state.max_span_achieved)

    def snapshot(self) -> dict:
        data = asdict(self.state)
        data["stop_reason"] = self.stop_reason
        return data


@dataclass
class ExposureState:
    current_exposure_ms: float
    consecutive_correct: int = 0


class TwoDownOneUpStaircase:
    """
    Лестница 2-down/1-up по длительности экспозиции.

    Две верные подряд: короче на step_down. Одна ошибка: длиннее на step_up.
    После каждого шага: clamp в [min_ms, max_ms] и снова на сетку кадров.
    Сходится примерно к 71% верных. Досрочной остановки нет.
    """

    finished = False
    stop_reason: Optional[str] = None

    def __init__(
        self,
        start_ms: float,
        step_down_ms: float,
        step_up_ms: float,
        min_ms: float,
        max_ms: float,
        frame_ms: float = FRAME_MS,
    ) -> None:
        if frame_ms <= 0:
            raise ConfigError(f"frame_ms must be positive, got {frame_ms}")
        if min_ms < 0 or min_ms > max_ms:
            raise ConfigError(f"bad exposure range [{min_ms}, {max_ms}]")
        if step_down_ms < 0 or step_up_ms < 0:
            raise ConfigError("staircase steps must be >= 0")
        if not min_ms <= start_ms <= max_ms:
            raise ConfigError(f"start exposure {start_ms} outside [{min_ms}, {max_ms}]")
        self.step_down_ms = step_down_ms
        self.step_up_ms = step_up_ms
        self.min_ms = min_ms
        self.max_ms = max_ms
        self.frame_ms = frame_ms
        self.state = ExposureState(current_exposure_ms=quantize_to_frames(start_ms, frame_ms))

    @property
    def value(self) -> float:
        return self.state.current_exposure_ms

    @property
    def frames(self) -> int:
        return ms_to_frames(self.state.current_exposure_ms, self.frame_ms)

    def update(self, correct: bool) -> None:
        st = self.state
        exposure = st.current_exposure_ms
        if correct:
            st.consecutive_correct += 1
            if st.consecutive_correct >= 2:
                exposure -= self.step_down_ms
                st.consecutive_correct = 0
        else:
            st.consecutive_correct = 0
            exposure += self.step_up_ms

        exposure = max(self.min_ms, min(self.max_ms, exposure))
        st.current_exposure_ms = quantize_to_frames(exposure, self.frame_ms)
        logger.debug("exposure -> %.2f ms (%d frames)", st.current_exposure_ms, self.frames)

    def snapshot(self) -> dict:
        data = asdict(self.state)
        data["frames"] = self.frames
        data["stop_reason"] = None
        return data
