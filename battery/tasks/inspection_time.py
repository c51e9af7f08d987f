import random

from adaptation.staircase import TwoDownOneUpStaircase
from analytics.metrics import compute_inspection_time_summary
from battery.block_runner import BlockSpec, TrialContext
from battery.response import Response
from battery.stimuli import LEFT, RIGHT, Fixation, LineMask, LinePair, Message, ResponsePrompt
from battery.tasks.base import START_HINT, PreparedTrial, TaskBase
from battery.timing import FRAME_MS
from config.settings import InspectionTimeConfig
from data.models import Block, InspectionTimeSummary, TaskId


class InspectionTimeTask(TaskBase):
    """
    Маскированное сравнение длины двух линий (inspection time).

    Экспозиция стимула подбирается лестницей 2-down/1-up и всегда
    показывается целым числом кадров.
    """

    task_id = TaskId.LINE_DISCRIMINATION
    title = "Task 1: Brief Lines"

    def __init__(self, cfg: InspectionTimeConfig, rng: random.Random, frame_ms: float = FRAME_MS) -> None:
        super().__init__(rng)
        self.cfg = cfg
        self.frame_ms = frame_ms

    def validate(self) -> None:
        self.cfg.validate()

    def blocks(self):
        return [
            BlockSpec(Block.PRACTICE, self.cfg.practice_trials, True, self.cfg.iti_ms, self.cfg.feedback_ms),
            BlockSpec(Block.TEST, self.cfg.test_trials, False, self.cfg.iti_ms, self.cfg.feedback_ms),
        ]

    def make_controller(self, spec: BlockSpec) -> TwoDownOneUpStaircase:
        start = (
            self.cfg.exposure_start_practice_ms
            if spec.block is Block.PRACTICE
            else self.cfg.exposure_start_test_ms
        )
        return TwoDownOneUpStaircase(
            start_ms=start,
            step_down_ms=self.cfg.step_down_ms,
            step_up_ms=self.cfg.step_up_ms,
            min_ms=self.cfg.exposure_min_ms,
            max_ms=self.cfg.exposure_max_ms,
            frame_ms=self.frame_ms,
        )

    def condition_for(self, trial_index, plan, controller):
        longer_side = LEFT if self.rng.random() < 0.5 else RIGHT
        return {
            "exposure_ms": controller.value,
            "exposure_frames": controller.frames,
            "longer_side": longer_side,
        }

    def build_trial(self, condition) -> PreparedTrial:
        cfg = self.cfg
        base = cfg.base_len + self.rng.randint(-cfg.jitter_len, cfg.jitter_len)
        longer_left = condition["longer_side"] == LEFT
        stimulus = LinePair(
            left_len=base + cfg.delta_len if longer_left else base,
            right_len=base if longer_left else base + cfg.delta_len,
        )
        expected = cfg.left_key if longer_left else cfg.right_key
        return PreparedTrial(condition=condition, stimulus=stimulus, expected=expected)

    def present(self, trial: PreparedTrial, ctx: TrialContext) -> None:
        cfg = self.cfg
        display = ctx.display
        display.show(Fixation(), duration_ms=cfg.fixation_ms)
        display.show(self._mask(), duration_ms=cfg.pre_mask_ms)
        display.show(trial.stimulus, duration_frames=trial.condition["exposure_frames"])

        # маска из mask_phases кадров; последний добирает остаток
        seg = cfg.mask_total_ms // cfg.mask_phases
        for i in range(cfg.mask_phases):
            last = i == cfg.mask_phases - 1
            display.show(self._mask(), duration_ms=cfg.mask_total_ms - seg * (cfg.mask_phases - 1) if last else seg)

        display.draw(
            ResponsePrompt(
                title=ctx.block.value,
                subtitle=f"Trial {ctx.trial_index}",
                hint=self.key_hint(),
            )
        )

    def collect(self, trial: PreparedTrial, ctx: TrialContext) -> Response:
        return ctx.capture.await_response({self.cfg.left_key, self.cfg.right_key}, self.cfg.response_max_ms)

    def summarize(self, test_records, outcome) -> InspectionTimeSummary:
        return compute_inspection_time_summary(test_records)

    def _mask(self) -> LineMask:
        return LineMask(seed=self.rng.getrandbits(32))

    def key_hint(self) -> str:
        return f"{self.cfg.left_key.upper()} = Left longer  |  {self.cfg.right_key.upper()} = Right longer"

    def overview(self) -> Message:
        return Message(
            title=self.title,
            lines=(
                "Two lines will flash very briefly and then be covered by a mask.",
                "After the mask, decide which line was longer.",
                f"Press {self.cfg.left_key.upper()} if the left line was longer.",
                f"Press {self.cfg.right_key.upper()} if the right line was longer.",
                "Sometimes it will feel too fast - that's expected.",
                START_HINT,
            ),
        )

    def completion(self, summary: InspectionTimeSummary) -> Message:
        threshold = "-" if summary.threshold_ms is None else f"{summary.threshold_ms:.0f}"
        return Message(
            title="Task Complete",
            lines=(
                f"Test accuracy: {round(summary.accuracy * 100)}%",
                f"Estimated threshold (ms): {threshold}",
                "Press SPACE to continue.",
            ),
        )
