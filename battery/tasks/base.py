from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from battery.block_runner import BlockOutcome, BlockSpec, TrialContext
from battery.response import Response
from battery.stimuli import Message
from data.models import TaskId, TaskSummary, TrialRecord

START_HINT = "Press SPACE to start."


@dataclass(frozen=True)
class PreparedTrial:
    condition: Dict[str, Any]
    stimulus: object
    expected: str


class TaskBase:
    """
    Общий каркас задачи. BlockRunner вызывает хуки по порядку:
    make_controller/plan -> condition_for -> build_trial -> present -> collect -> is_correct.
    """

    task_id: TaskId
    title: str = "Task"
    measures_rt: bool = True

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def validate(self) -> None:
        return None

    def blocks(self) -> List[BlockSpec]:
        raise NotImplementedError

    def make_controller(self, spec: BlockSpec):
        return None

    def plan(self, spec: BlockSpec) -> Optional[List[Dict[str, Any]]]:
        return None

    def condition_for(self, trial_index: int, plan, controller) -> Dict[str, Any]:
        if plan is None:
            raise NotImplementedError(f"{type(self).__name__} has neither a plan nor a controller")
        return dict(plan[trial_index - 1])

    def build_trial(self, condition: Dict[str, Any]) -> PreparedTrial:
        raise NotImplementedError

    def present(self, trial: PreparedTrial, ctx: TrialContext) -> None:
        raise NotImplementedError

    def collect(self, trial: PreparedTrial, ctx: TrialContext) -> Response:
        raise NotImplementedError

    def is_correct(self, trial: PreparedTrial, response: Response) -> bool:
        return not response.is_timeout and response.token == trial.expected

    def summarize(self, test_records: List[TrialRecord], outcome: Optional[BlockOutcome]) -> TaskSummary:
        raise NotImplementedError

    # ---- тексты экранов между блоками ----

    def overview(self) -> Message:
        return Message(title=self.title, lines=(START_HINT,))

    def block_intro(self, spec: BlockSpec) -> Message:
        feedback = "Feedback is shown in practice." if spec.feedback else "No feedback during the test."
        return Message(title=spec.block.value, lines=(self.key_hint(), feedback, START_HINT))

    def key_hint(self) -> str:
        return ""

    def completion(self, summary: TaskSummary) -> Message:
        return Message(title="Task Complete", lines=("Press SPACE to continue.",))
