import random

from analytics.metrics import compute_flanker_summary
from battery.block_runner import BlockSpec, TrialContext
from battery.response import Response
from battery.stimuli import CONGRUENT, LEFT, RIGHT, ArrowRow, Fixation, Message
from battery.tasks.base import START_HINT, PreparedTrial, TaskBase
from battery.trial_generator import generate_flanker_plan
from config.settings import FlankerConfig
from data.models import Block, FlankerSummary, TaskId


class FlankerTask(TaskBase):
    task_id = TaskId.FLANKER
    title = "Task 3: Flanker"

    def __init__(self, cfg: FlankerConfig, rng: random.Random) -> None:
        super().__init__(rng)
        self.cfg = cfg

    def validate(self) -> None:
        self.cfg.validate()

    def blocks(self):
        cfg = self.cfg
        return [
            BlockSpec(Block.PRACTICE, cfg.practice_trials, True, cfg.iti_ms, cfg.feedback_ms),
            BlockSpec(Block.TEST, cfg.test_trials, False, cfg.iti_ms, cfg.feedback_ms),
        ]

    def plan(self, spec: BlockSpec):
        return generate_flanker_plan(spec.n_trials, self.rng)

    def build_trial(self, condition) -> PreparedTrial:
        target = condition["target_dir"]
        opposite = RIGHT if target == LEFT else LEFT
        flank = target if condition["congruency"] == CONGRUENT else opposite
        condition = dict(condition, flank_dir=flank)
        expected = self.cfg.left_key if target == LEFT else self.cfg.right_key
        stimulus = ArrowRow(target_dir=target, flank_dir=flank, flankers=self.cfg.flankers)
        return PreparedTrial(condition=condition, stimulus=stimulus, expected=expected)

    def present(self, trial: PreparedTrial, ctx: TrialContext) -> None:
        ctx.display.show(Fixation(), duration_ms=self.cfg.fixation_ms)
        # стрелки висят до ответа; RT считается от этого кадра
        ctx.display.draw(trial.stimulus)

    def collect(self, trial: PreparedTrial, ctx: TrialContext) -> Response:
        response = ctx.capture.await_response({self.cfg.left_key, self.cfg.right_key}, self.cfg.max_rt_ms)
        ctx.display.draw(Fixation())
        return response

    def summarize(self, test_records, outcome) -> FlankerSummary:
        return compute_flanker_summary(test_records)

    def key_hint(self) -> str:
        return f"{self.cfg.left_key.upper()} = Left  |  {self.cfg.right_key.upper()} = Right"

    def overview(self) -> Message:
        return Message(
            title=self.title,
            lines=(
                "A row of arrows will appear. Respond to the center arrow only.",
                "Ignore the arrows on the sides.",
                f"{self.cfg.left_key.upper()} = center arrow points left",
                f"{self.cfg.right_key.upper()} = center arrow points right",
                "Be as fast and accurate as you can.",
                START_HINT,
            ),
        )

    def completion(self, summary: FlankerSummary) -> Message:
        def ms(value):
            return "-" if value is None else f"{value} ms"

        return Message(
            title="Task Complete",
            lines=(
                f"Accuracy: {round(summary.accuracy * 100)}%",
                f"Mean RT (congruent): {ms(summary.mean_rt_congruent_ms)}",
                f"Mean RT (incongruent): {ms(summary.mean_rt_incongruent_ms)}",
                f"Interference (incong - cong): {ms(summary.interference_ms)}",
                "Press SPACE to continue.",
            ),
        )
