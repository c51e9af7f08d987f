import random

import pytest

from battery.block_runner import BlockRunner, BlockSpec, TrialContext
from battery.stimuli import (
    CONGRUENT,
    INCONGRUENT,
    LEFT,
    RIGHT,
    ArrowRow,
    Blank,
    Digit,
    Fixation,
    LinePair,
    ResponsePrompt,
)
from battery.tasks import DigitSpanTask, FlankerTask, InspectionTimeTask
from battery.timing import FRAME_MS
from config.settings import DigitSpanConfig, FlankerConfig, InspectionTimeConfig
from data.models import Block
from tests.fakes import correct_answer, make_engine, scripted


def _ctx(engine, block=Block.TEST, trial_index=1):
    return TrialContext(block, trial_index, engine.timing, engine.display, engine.capture)


class TestInspectionTimeTask:
    def test_presentation_sequence(self):
        engine = make_engine()
        task = InspectionTimeTask(InspectionTimeConfig(), random.Random(1))
        controller = task.make_controller(BlockSpec(Block.TEST, 1, False))
        trial = task.build_trial(task.condition_for(1, None, controller))
        task.present(trial, _ctx(engine))

        kinds = [(type(d).__name__, ms, frames) for d, ms, frames in engine.display.shown]
        assert kinds[:3] == [("Fixation", 250, None), ("LineMask", 100, None), ("LinePair", None, 13)]
        assert kinds[3:] == [("LineMask", 81, None)] * 7 + [("LineMask", 83, None)]
        assert isinstance(engine.display.drawn[-1], ResponsePrompt)
        assert engine.clock.frames_waited == 13

    def test_condition_carries_quantized_exposure(self):
        task = InspectionTimeTask(InspectionTimeConfig(), random.Random(1))
        controller = task.make_controller(BlockSpec(Block.TEST, 1, False))
        condition = task.condition_for(1, None, controller)
        assert condition["exposure_frames"] == 13
        assert condition["exposure_ms"] == pytest.approx(13 * FRAME_MS)
        assert condition["longer_side"] in (LEFT, RIGHT)

    @pytest.mark.parametrize("side, key", [(LEFT, "f"), (RIGHT, "j")])
    def test_longer_line_decides_expected_key(self, side, key):
        task = InspectionTimeTask(InspectionTimeConfig(), random.Random(5))
        trial = task.build_trial({"exposure_ms": 200, "exposure_frames": 12, "longer_side": side})
        pair = trial.stimulus
        assert isinstance(pair, LinePair)
        assert abs(pair.left_len - pair.right_len) == 10
        assert (pair.left_len > pair.right_len) == (side == LEFT)
        assert 112 <= min(pair.left_len, pair.right_len) <= 128
        assert trial.expected == key

    def test_staircase_follows_answers(self):
        engine = make_engine(policy=scripted([True, True, False]))
        task = InspectionTimeTask(InspectionTimeConfig(test_trials=4), random.Random(2), frame_ms=FRAME_MS)
        runner = BlockRunner(engine.timing, engine.display, engine.capture)
        records = []
        runner.run_block(task, BlockSpec(Block.TEST, 4, False, 220, 650), records)
        frames = [r.condition["exposure_frames"] for r in records]
        # 13 -> 13 -> (two correct) 12 -> (miss: 200 + 10 stays on 12 frames) 12
        assert frames == [13, 13, 12, 12]
        assert [r.correct for r in records] == [True, True, False, True]
        assert all(r.rt_ms == pytest.approx(300) for r in records)


class TestDigitSpanTask:
    def test_digits_are_shown_one_at_a_time(self):
        engine = make_engine()
        task = DigitSpanTask(DigitSpanConfig(), random.Random(3))
        trial = task.build_trial({"span": 4})
        task.present(trial, _ctx(engine))

        shown = engine.display.shown
        assert len(shown) == 8
        assert [type(d) for d, _, _ in shown] == [Digit, Blank] * 4
        assert "".join(str(d.value) for d, _, _ in shown if isinstance(d, Digit)) == trial.expected
        assert {ms for d, ms, _ in shown if isinstance(d, Digit)} == {900}
        assert {ms for d, ms, _ in shown if isinstance(d, Blank)} == {250}

    def test_typed_recall_is_scored_exactly(self):
        engine = make_engine(policy=correct_answer)
        task = DigitSpanTask(DigitSpanConfig(), random.Random(3))
        trial = task.build_trial({"span": 3})
        ctx = _ctx(engine)
        task.present(trial, ctx)
        response = task.collect(trial, ctx)
        assert response.token == trial.expected
        assert task.is_correct(trial, response)

    def test_practice_uses_fixed_spans(self):
        engine = make_engine(policy=scripted([False, False, False]))
        task = DigitSpanTask(DigitSpanConfig(), random.Random(4))
        practice = task.blocks()[0]
        records = []
        outcome = BlockRunner(engine.timing, engine.display, engine.capture).run_block(task, practice, records)
        assert [r.condition["span"] for r in records] == [3, 4, 4]
        assert outcome.stop_reason is None
        assert all(r.rt_ms is None for r in records)

    def test_test_block_runs_ascending_staircase(self):
        engine = make_engine(policy=scripted([True, False, False, False]))
        task = DigitSpanTask(DigitSpanConfig(), random.Random(4))
        test_block = task.blocks()[1]
        assert test_block.n_trials == 20
        records = []
        outcome = BlockRunner(engine.timing, engine.display, engine.capture).run_block(task, test_block, records)
        assert [r.condition["span"] for r in records] == [3, 3, 4, 4]
        assert outcome.stop_reason == "0/2 at span 4"
        summary = task.summarize(records, outcome)
        assert summary.max_span == 3
        assert summary.accuracy == 0.25


class TestFlankerTask:
    @pytest.mark.parametrize(
        "target, congruency, flank, key",
        [
            (LEFT, CONGRUENT, LEFT, "f"),
            (LEFT, INCONGRUENT, RIGHT, "f"),
            (RIGHT, CONGRUENT, RIGHT, "j"),
            (RIGHT, INCONGRUENT, LEFT, "j"),
        ],
    )
    def test_build_trial(self, target, congruency, flank, key):
        task = FlankerTask(FlankerConfig(), random.Random(0))
        trial = task.build_trial({"target_dir": target, "congruency": congruency})
        assert trial.condition["flank_dir"] == flank
        assert trial.expected == key
        assert trial.stimulus.arrows == (flank, flank, target, flank, flank)

    def test_arrow_text(self):
        assert ArrowRow(target_dir=LEFT, flank_dir=RIGHT).as_text() == ">><>>"

    def test_timeout_after_max_rt(self):
        engine = make_engine(policy=scripted([None]))
        task = FlankerTask(FlankerConfig(), random.Random(0))
        trial = task.build_trial({"target_dir": LEFT, "congruency": CONGRUENT})
        ctx = _ctx(engine)
        task.present(trial, ctx)
        started = engine.clock.t
        response = task.collect(trial, ctx)
        assert response.is_timeout
        assert engine.clock.t - started == pytest.approx(2500)
        assert isinstance(engine.display.drawn[-1], Fixation)

    def test_block_is_balanced(self):
        engine = make_engine(policy=scripted([]))
        task = FlankerTask(FlankerConfig(test_trials=8), random.Random(9))
        records = []
        BlockRunner(engine.timing, engine.display, engine.capture).run_block(task, task.blocks()[1], records)
        cells = sorted((r.condition["target_dir"], r.condition["congruency"]) for r in records)
        assert cells == sorted([(LEFT, CONGRUENT), (LEFT, INCONGRUENT), (RIGHT, CONGRUENT), (RIGHT, INCONGRUENT)] * 2)
        assert all(r.correct for r in records)
