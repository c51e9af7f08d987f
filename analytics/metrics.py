"""
Подсчёт итогов задач по записям Test-блока.

Все функции чистые и не зависят от порядка записей во входном списке:
где важен порядок (хвост лестницы), сортируем по trial_index.
Пустой вход даёт нейтральный итог (accuracy 0, остальное None), а не исключение.
"""
import statistics
from typing import List, Optional, Sequence

from battery.stimuli import CONGRUENT, INCONGRUENT
from data.models import DigitSpanSummary, FlankerSummary, InspectionTimeSummary, TrialRecord

THRESHOLD_TAIL = 24


def compute_accuracy(records: Sequence[TrialRecord]) -> float:
    if not records:
        return 0.0
    return sum(1 for r in records if r.correct) / len(records)


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return statistics.mean(values)


def _round_or_none(value: Optional[float]) -> Optional[int]:
    return None if value is None else int(round(value))


def median_tail(values: Sequence[float], n: int = THRESHOLD_TAIL) -> Optional[float]:
    """
    Медиана последних min(n, len) значений.

    При чётной длине хвоста берём среднее двух центральных (statistics.median).
    """
    tail = list(values)[-n:] if n > 0 else []
    if not tail:
        return None
    return statistics.median(tail)


def compute_digit_span_summary(
    records: Sequence[TrialRecord],
    max_span: int,
    stop_reason: Optional[str],
) -> DigitSpanSummary:
    return DigitSpanSummary(
        max_span=max_span,
        accuracy=compute_accuracy(records),
        stop_reason=stop_reason,
        n_trials=len(records),
    )


def compute_flanker_summary(records: Sequence[TrialRecord]) -> FlankerSummary:
    """
    accuracy: верные ответы без таймаутов относительно всех проб;
    RT: только по верным пробам, отдельно для congruent и incongruent;
    interference = mean(incongruent) - mean(congruent).
    """
    n = len(records)
    answered = [r for r in records if not r.is_timeout]
    accuracy = sum(1 for r in answered if r.correct) / n if n else 0.0

    correct_with_rt = [r for r in answered if r.correct and r.rt_ms is not None]
    congruent = [r.rt_ms for r in correct_with_rt if r.condition.get("congruency") == CONGRUENT]
    incongruent = [r.rt_ms for r in correct_with_rt if r.condition.get("congruency") == INCONGRUENT]

    mean_c = _mean(congruent)
    mean_i = _mean(incongruent)
    interference = (mean_i - mean_c) if (mean_c is not None and mean_i is not None) else None

    return FlankerSummary(
        accuracy=accuracy,
        mean_rt_congruent_ms=_round_or_none(mean_c),
        mean_rt_incongruent_ms=_round_or_none(mean_i),
        interference_ms=_round_or_none(interference),
        n_trials=n,
        n_timeouts=n - len(answered),
    )


def compute_inspection_time_summary(records: Sequence[TrialRecord]) -> InspectionTimeSummary:
    ordered = sorted(records, key=lambda r: r.trial_index)
    exposures = [r.condition["exposure_ms"] for r in ordered]
    return InspectionTimeSummary(
        accuracy=compute_accuracy(ordered),
        threshold_ms=median_tail(exposures, THRESHOLD_TAIL),
        n_trials=len(ordered),
    )
