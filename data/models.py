from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from battery.stimuli import describe


class TaskId(str, Enum):
    LINE_DISCRIMINATION = "inspection_time_line_masked"
    DIGIT_SPAN = "digit_span_forward"
    FLANKER = "flanker_arrows_2afc"


class Block(str, Enum):
    PRACTICE = "Practice"
    TEST = "Test"


@dataclass(frozen=True)
class TrialRecord:
    """
    Одно наблюдение. После создания не меняется.

    response=None <=> is_timeout; при таймауте correct=False и rt_ms=None.
    """

    task: TaskId
    block: Block
    trial_index: int
    condition: Mapping[str, Any]
    stimulus: object
    expected: str
    response: Optional[str]
    is_timeout: bool
    correct: bool
    rt_ms: Optional[float] = None

    def __post_init__(self) -> None:
        if self.trial_index < 1:
            raise ValueError(f"trial_index must be >= 1, got {self.trial_index}")
        if (self.response is None) != self.is_timeout:
            raise ValueError("exactly one of response / timeout must hold")
        if self.is_timeout and (self.correct or self.rt_ms is not None):
            raise ValueError("timed-out trial cannot be correct or carry an RT")
        if self.rt_ms is not None and self.rt_ms < 0:
            raise ValueError(f"rt_ms must be >= 0, got {self.rt_ms}")
        # своя копия только для чтения: порог считается по condition
        object.__setattr__(self, "condition", MappingProxyType(dict(self.condition)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task": self.task.value,
            "block": self.block.value,
            "trial": self.trial_index,
            "condition": dict(self.condition),
            "stimulus": describe(self.stimulus),
            "expected": self.expected,
            "response": self.response,
            "timeout": self.is_timeout,
            "correct": self.correct,
            "rt_ms": self.rt_ms,
        }


@dataclass(frozen=True)
class InspectionTimeSummary:
    accuracy: float
    threshold_ms: Optional[float]
    n_trials: int


@dataclass(frozen=True)
class DigitSpanSummary:
    max_span: int
    accuracy: float
    stop_reason: Optional[str]
    n_trials: int


@dataclass(frozen=True)
class FlankerSummary:
    accuracy: float
    mean_rt_congruent_ms: Optional[int]
    mean_rt_incongruent_ms: Optional[int]
    interference_ms: Optional[int]
    n_trials: int
    n_timeouts: int


TaskSummary = Union[InspectionTimeSummary, DigitSpanSummary, FlankerSummary]


@dataclass(frozen=True)
class TaskRun:
    task: TaskId
    records: Tuple[TrialRecord, ...]
    summary: TaskSummary

    def to_payload(self) -> Dict[str, Any]:
        return {
            "task": self.task.value,
            "trials": [r.to_dict() for r in self.records],
            "summary": asdict(self.summary),
        }


@dataclass
class SessionState:
    """Явное состояние сессии, передаётся через оркестратор (без глобалов)."""

    session_id: str
    seed: int
    runs: List[TaskRun] = field(default_factory=list)

    def add_run(self, run: TaskRun) -> None:
        self.runs.append(run)

    def to_payload(self) -> List[Dict[str, Any]]:
        return [run.to_payload() for run in self.runs]
