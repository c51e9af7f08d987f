import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from battery.display import Display
from battery.errors import ConfigError
from battery.response import ResponseCapture
from battery.stimuli import Feedback
from battery.timing import Timing
from data.models import Block, TrialRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockSpec:
    block: Block
    n_trials: int
    feedback: bool
    iti_ms: float = 0.0
    feedback_ms: float = 0.0


@dataclass(frozen=True)
class BlockOutcome:
    block: Block
    n_run: int
    controller_state: Optional[dict] = None
    stop_reason: Optional[str] = None


@dataclass(frozen=True)
class TrialContext:
    """То, что задача получает на время одной пробы."""

    block: Block
    trial_index: int
    timing: Timing
    display: Display
    capture: ResponseCapture


class BlockRunner:
    """
    Проигрывает один блок (Practice или Test).

    Для каждой пробы:
    условие -> показ (фиксация, стимул, маска) -> ожидание ответа ->
    правильность -> TrialRecord -> шаг лестницы -> фидбек -> ITI.
    """

    def __init__(
        self,
        timing: Timing,
        display: Display,
        capture: ResponseCapture,
        on_record: Optional[Callable[[TrialRecord], None]] = None,
    ) -> None:
        self.timing = timing
        self.display = display
        self.capture = capture
        self.on_record = on_record

    def run_block(self, task, spec: BlockSpec, records: List[TrialRecord]) -> BlockOutcome:
        if spec.n_trials < 0:
            raise ConfigError(f"n_trials must be >= 0, got {spec.n_trials}")
        task.validate()

        controller = task.make_controller(spec)
        plan = task.plan(spec) if controller is None else None
        if plan is not None and len(plan) < spec.n_trials:
            raise ConfigError(f"plan has {len(plan)} trials, block needs {spec.n_trials}")

        logger.info("%s %s block: %d trials", task.task_id.value, spec.block.value, spec.n_trials)

        n_run = 0
        for trial_index in range(1, spec.n_trials + 1):
            ctx = TrialContext(
                block=spec.block,
                trial_index=trial_index,
                timing=self.timing,
                display=self.display,
                capture=self.capture,
            )
            condition = task.condition_for(trial_index, plan, controller)
            trial = task.build_trial(condition)

            task.present(trial, ctx)
            response = task.collect(trial, ctx)
            correct = task.is_correct(trial, response)

            record = TrialRecord(
                task=task.task_id,
                block=spec.block,
                trial_index=trial_index,
                condition=trial.condition,
                stimulus=trial.stimulus,
                expected=trial.expected,
                response=response.token,
                is_timeout=response.is_timeout,
                correct=correct,
                rt_ms=response.rt_ms if task.measures_rt and not response.is_timeout else None,
            )
            records.append(record)
            n_run += 1
            logger.debug(
                "trial %d: response=%s correct=%s rt=%s",
                trial_index, record.response, record.correct, record.rt_ms,
            )
            if self.on_record is not None:
                self.on_record(record)

            if controller is not None:
                controller.update(correct)
                if controller.finished:
                    logger.info("block stopped early after %d trials: %s", n_run, controller.stop_reason)
                    break

            if spec.feedback:
                self.display.show(Feedback(correct), duration_ms=spec.feedback_ms)

            self.timing.delay(spec.iti_ms)

        if controller is None:
            return BlockOutcome(block=spec.block, n_run=n_run)
        return BlockOutcome(
            block=spec.block,
            n_run=n_run,
            controller_state=controller.snapshot(),
            stop_reason=controller.stop_reason,
        )
