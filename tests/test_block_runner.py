import random

import pytest

from battery.block_runner import BlockRunner, BlockSpec
from battery.errors import ConfigError
from battery.response import Response
from battery.stimuli import Feedback, Fixation, Message
from battery.tasks.base import PreparedTrial, TaskBase
from data.models import Block, TaskId
from tests.fakes import make_engine


class CountingController:
    """Stops the block once `limit` trials were reported."""

    def __init__(self, limit):
        self.limit = limit
        self.outcomes = []
        self.finished = False
        self.stop_reason = None

    @property
    def value(self):
        return len(self.outcomes) + 1

    def update(self, correct):
        self.outcomes.append(correct)
        if len(self.outcomes) >= self.limit:
            self.finished = True
            self.stop_reason = f"stopped after {self.limit}"

    def snapshot(self):
        return {"n": len(self.outcomes)}


class StubTask(TaskBase):
    """Answers are decided by `answers`: a token, or None for a timeout."""

    task_id = TaskId.FLANKER

    def __init__(self, answers, plan=None, controller=None):
        super().__init__(random.Random(0))
        self.answers = list(answers)
        self._plan = plan
        self._controller = controller
        self.calls = []

    def make_controller(self, spec):
        return self._controller

    def plan(self, spec):
        return self._plan

    def condition_for(self, trial_index, plan, controller):
        if controller is not None:
            return {"level": controller.value}
        return super().condition_for(trial_index, plan, controller)

    def build_trial(self, condition):
        self.calls.append(("build", condition))
        return PreparedTrial(condition=condition, stimulus=Fixation(), expected="f")

    def present(self, trial, ctx):
        self.calls.append(("present", ctx.trial_index))
        ctx.display.draw(trial.stimulus)

    def collect(self, trial, ctx):
        self.calls.append(("collect", ctx.trial_index))
        token = self.answers.pop(0)
        now = ctx.timing.now_ms()
        if token is None:
            return Response(token=None, rt_ms=None, timestamp_ms=now)
        return Response(token=token, rt_ms=250.0, timestamp_ms=now)


def _runner(engine, on_record=None):
    return BlockRunner(engine.timing, engine.display, engine.capture, on_record=on_record)


class TestRunBlock:
    def test_records_every_trial_in_order(self):
        engine = make_engine()
        task = StubTask(["f", "j", None], plan=[{"i": 1}, {"i": 2}, {"i": 3}])
        records = []
        outcome = _runner(engine).run_block(task, BlockSpec(Block.TEST, 3, feedback=False), records)

        assert outcome.n_run == 3
        assert [r.trial_index for r in records] == [1, 2, 3]
        assert [r.condition for r in records] == [{"i": 1}, {"i": 2}, {"i": 3}]
        assert [r.correct for r in records] == [True, False, False]
        assert records[2].is_timeout and records[2].rt_ms is None
        assert records[0].rt_ms == 250.0
        assert all(r.block is Block.TEST for r in records)

    def test_hooks_run_in_order(self):
        engine = make_engine()
        task = StubTask(["f"], plan=[{}])
        _runner(engine).run_block(task, BlockSpec(Block.TEST, 1, feedback=False), [])
        assert task.calls == [("build", {}), ("present", 1), ("collect", 1)]

    def test_controller_stops_block_early(self):
        engine = make_engine()
        controller = CountingController(limit=2)
        task = StubTask(["f"] * 5, controller=controller)
        records = []
        outcome = _runner(engine).run_block(task, BlockSpec(Block.TEST, 5, feedback=False), records)

        assert outcome.n_run == 2
        assert len(records) == 2
        assert [r.condition["level"] for r in records] == [1, 2]
        assert outcome.stop_reason == "stopped after 2"
        assert outcome.controller_state == {"n": 2}

    def test_empty_block(self):
        engine = make_engine()
        task = StubTask([], plan=[])
        records = []
        outcome = _runner(engine).run_block(task, BlockSpec(Block.PRACTICE, 0, feedback=True), records)
        assert outcome.n_run == 0
        assert records == []
        assert engine.display.drawn == []

    def test_feedback_then_iti(self):
        engine = make_engine()
        task = StubTask(["f", "j"], plan=[{}, {}])
        spec = BlockSpec(Block.PRACTICE, 2, feedback=True, iti_ms=300, feedback_ms=500)
        _runner(engine).run_block(task, spec, [])

        feedback = [s for s in engine.display.shown if isinstance(s[0], Feedback)]
        assert feedback == [(Feedback(True), 500, None), (Feedback(False), 500, None)]
        assert engine.clock.t >= 2 * (300 + 500)

    def test_no_feedback_in_test_block(self):
        engine = make_engine()
        task = StubTask(["f"], plan=[{}])
        _runner(engine).run_block(task, BlockSpec(Block.TEST, 1, feedback=False), [])
        assert engine.display.of_kind(Feedback) == []

    def test_on_record_sees_each_record(self):
        engine = make_engine()
        seen = []
        task = StubTask(["f", "f"], plan=[{}, {}])
        records = []
        _runner(engine, on_record=seen.append).run_block(task, BlockSpec(Block.TEST, 2, False), records)
        assert seen == records

    def test_short_plan_is_a_config_error(self):
        engine = make_engine()
        task = StubTask(["f"] * 3, plan=[{}])
        with pytest.raises(ConfigError):
            _runner(engine).run_block(task, BlockSpec(Block.TEST, 3, False), [])
        assert task.calls == []

    def test_negative_trial_count_is_a_config_error(self):
        engine = make_engine()
        with pytest.raises(ConfigError):
            _runner(engine).run_block(StubTask([], plan=[]), BlockSpec(Block.TEST, -1, False), [])

    def test_task_validation_runs_before_first_trial(self):
        class BrokenTask(StubTask):
            def validate(self):
                raise ConfigError("bad")

        engine = make_engine()
        task = BrokenTask(["f"], plan=[{}])
        with pytest.raises(ConfigError):
            _runner(engine).run_block(task, BlockSpec(Block.TEST, 1, False), [])
        assert task.calls == []
        assert engine.display.of_kind(Message) == []
