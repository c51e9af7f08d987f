import logging
from typing import Callable, Dict, Iterable, List, Optional

from battery.block_runner import BlockOutcome, BlockRunner
from data.models import Block, SessionState, TaskRun, TrialRecord

logger = logging.getLogger(__name__)

START_TOKENS = ("space", "enter")


class TaskOrchestrator:
    """
    Одна задача = Practice-блок, затем Test-блок, затем итог по Test-записям.

    Список записей задачи принадлежит оркестратору; дописывает в него
    только BlockRunner.
    """

    def __init__(
        self,
        runner: BlockRunner,
        intro_enabled: bool = True,
        on_task_run: Optional[Callable[[TaskRun], None]] = None,
    ) -> None:
        self.runner = runner
        self.intro_enabled = intro_enabled
        self.on_task_run = on_task_run

    def run_task(self, task) -> TaskRun:
        task.validate()
        logger.info("task %s started", task.task_id.value)

        records: List[TrialRecord] = []
        outcomes: Dict[Block, BlockOutcome] = {}

        if self.intro_enabled:
            self._gate(task.overview())

        for spec in task.blocks():
            if self.intro_enabled:
                self._gate(task.block_intro(spec))
            outcomes[spec.block] = self.runner.run_block(task, spec, records)

        test_records = [r for r in records if r.block is Block.TEST]
        summary = task.summarize(test_records, outcomes.get(Block.TEST))
        logger.info("task %s finished: %s", task.task_id.value, summary)

        if self.intro_enabled:
            self._gate(task.completion(summary))

        run = TaskRun(task=task.task_id, records=tuple(records), summary=summary)
        if self.on_task_run is not None:
            self.on_task_run(run)
        return run

    def run_session(self, tasks: Iterable, session: SessionState) -> SessionState:
        for task in tasks:
            session.add_run(self.run_task(task))
        logger.info("session %s complete: %d tasks", session.session_id, len(session.runs))
        return session

    def _gate(self, message) -> None:
        # экран с текстом, ждём пробел без ограничения по времени
        self.runner.display.draw(message)
        self.runner.capture.await_response(START_TOKENS, None)
