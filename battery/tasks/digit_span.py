import random

from adaptation.staircase import AscendingSpanStaircase
from analytics.metrics import compute_digit_span_summary
from battery.block_runner import BlockSpec, TrialContext
from battery.response import Response, collect_typed_response
from battery.stimuli import Blank, Digit, DigitSequence, Message
from battery.tasks.base import START_HINT, PreparedTrial, TaskBase
from config.settings import DigitSpanConfig
from data.models import Block, DigitSpanSummary, TaskId


class DigitSpanTask(TaskBase):
    task_id = TaskId.DIGIT_SPAN
    title = "Task 2: Digit Span"
    measures_rt = False

    def __init__(self, cfg: DigitSpanConfig, rng: random.Random) -> None:
        super().__init__(rng)
        self.cfg = cfg

    def validate(self) -> None:
        self.cfg.validate()

    def blocks(self):
        cfg = self.cfg
        planned = self._staircase().planned_trials
        return [
            BlockSpec(Block.PRACTICE, len(cfg.practice_spans), True, cfg.practice_iti_ms, cfg.feedback_ms),
            BlockSpec(Block.TEST, planned, False, cfg.test_iti_ms, cfg.feedback_ms),
        ]

    def make_controller(self, spec: BlockSpec):
        if spec.block is not Block.TEST:
            return None
        return self._staircase()

    def _staircase(self) -> AscendingSpanStaircase:
        return AscendingSpanStaircase(
            start_span=self.cfg.start_span,
            max_span_limit=self.cfg.max_span,
            trials_per_span=self.cfg.trials_per_span,
        )

    def plan(self, spec: BlockSpec):
        return [{"span": span} for span in self.cfg.practice_spans[: spec.n_trials]]

    def condition_for(self, trial_index, plan, controller):
        if controller is not None:
            return {"span": controller.value}
        return super().condition_for(trial_index, plan, controller)

    def build_trial(self, condition) -> PreparedTrial:
        digits = "".join(str(self.rng.randint(0, 9)) for _ in range(condition["span"]))
        return PreparedTrial(condition=condition, stimulus=DigitSequence(digits), expected=digits)

    def present(self, trial: PreparedTrial, ctx: TrialContext) -> None:
        for ch in trial.stimulus.digits:
            ctx.display.show(Digit(int(ch)), duration_ms=self.cfg.digit_ms)
            ctx.display.show(Blank(), duration_ms=self.cfg.gap_ms)

    def collect(self, trial: PreparedTrial, ctx: TrialContext) -> Response:
        span = trial.condition["span"]
        return collect_typed_response(
            ctx.capture,
            ctx.display,
            prompt=f"Type the digits in order (length {span})",
            max_len=span,
            timeout_ms=self.cfg.response_max_ms,
        )

    def summarize(self, test_records, outcome) -> DigitSpanSummary:
        state = outcome.controller_state if outcome is not None else None
        if not state:
            return compute_digit_span_summary(test_records, self.cfg.start_span - 1, None)
        return compute_digit_span_summary(test_records, state["max_span_achieved"], outcome.stop_reason)

    def key_hint(self) -> str:
        return "Type the digits, then press ENTER."

    def overview(self) -> Message:
        return Message(
            title=self.title,
            lines=(
                "You will see a sequence of digits, one at a time.",
                "After the sequence ends, type the digits in the same order.",
                "Try to be accurate. Speed is not important.",
                "Do not write anything down.",
                START_HINT,
            ),
        )

    def completion(self, summary: DigitSpanSummary) -> Message:
        return Message(
            title="Task Complete",
            lines=(
                f"Max span achieved: {summary.max_span}",
                f"Test accuracy: {round(summary.accuracy * 100)}%",
                f"Stop reason: {summary.stop_reason}",
                "Press SPACE to continue.",
            ),
        )
