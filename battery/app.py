import logging
import random
import time
from dataclasses import asdict
from typing import List

import pygame

from battery.block_runner import BlockRunner
from battery.clock import PygameClock
from battery.errors import BatteryError, ConfigError, SessionAborted
from battery.input import PygameEventSource
from battery.orchestrator import TaskOrchestrator
from battery.renderer import PygameRenderer
from battery.response import InputChannel, ResponseCapture
from battery.tasks import DigitSpanTask, FlankerTask, InspectionTimeTask
from battery.timing import Timing
from config.settings import BatteryConfig
from data.logger import JsonlLogger
from data.models import SessionState, TaskRun, TrialRecord

logger = logging.getLogger(__name__)

TASK_NAMES = ("inspection_time", "digit_span", "flanker")


class BatteryApp:
    def __init__(self, cfg: BatteryConfig) -> None:
        cfg.timing.validate()
        self.cfg = cfg

        pygame.init()
        self.screen = self._open_window()
        pygame.display.set_caption(cfg.window.title)
        pygame.mouse.set_visible(False)

        self.clock = PygameClock(cfg.window.fps)
        self.channel = InputChannel(PygameEventSource())
        self.timing = Timing(self.clock, self.channel, cfg.timing.frame_ms, cfg.timing.watchdog_ms)
        self.renderer = PygameRenderer(self.screen, self.timing)
        self.capture = ResponseCapture(self.timing, self.channel)

        self.session = SessionState(session_id=f"s{int(time.time())}", seed=cfg.session.seed)
        self.events_logger = JsonlLogger(cfg.session.events_path)

        self.runner = BlockRunner(self.timing, self.renderer, self.capture, on_record=self._log_trial)
        self.orchestrator = TaskOrchestrator(
            self.runner,
            intro_enabled=cfg.session.intro_enabled,
            on_task_run=self._log_task_run,
        )

    def _open_window(self) -> pygame.Surface:
        win = self.cfg.window
        flags = pygame.FULLSCREEN if win.fullscreen else 0
        if win.vsync:
            try:
                return pygame.display.set_mode((win.width, win.height), flags | pygame.SCALED, vsync=1)
            except pygame.error as exc:
                logger.warning("vsync not available (%s), falling back to a plain window", exc)
        return pygame.display.set_mode((win.width, win.height), flags)

    def build_tasks(self) -> List:
        rng = random.Random(self.cfg.session.seed)
        factories = {
            "inspection_time": lambda: InspectionTimeTask(self.cfg.inspection_time, rng, self.cfg.timing.frame_ms),
            "digit_span": lambda: DigitSpanTask(self.cfg.digit_span, rng),
            "flanker": lambda: FlankerTask(self.cfg.flanker, rng),
        }
        tasks = []
        for name in self.cfg.session.tasks:
            if name not in factories:
                raise ConfigError(f"Unknown task: {name!r} (expected one of {', '.join(TASK_NAMES)})")
            tasks.append(factories[name]())
        return tasks

    def run(self) -> SessionState:
        logger.info("session %s started (seed=%d)", self.session.session_id, self.session.seed)
        try:
            self.orchestrator.run_session(self.build_tasks(), self.session)
        except SessionAborted as exc:
            logger.warning("session %s aborted: %s", self.session.session_id, exc)
        except BatteryError:
            logger.exception("session %s failed", self.session.session_id)
            raise
        finally:
            pygame.quit()
        return self.session

    def _log_trial(self, record: TrialRecord) -> None:
        self.events_logger.write(
            {
                "event": "trial",
                "timestamp": int(time.time()),
                "session_id": self.session.session_id,
                **record.to_dict(),
            }
        )

    def _log_task_run(self, run: TaskRun) -> None:
        self.events_logger.write(
            {
                "event": "task_summary",
                "timestamp": int(time.time()),
                "session_id": self.session.session_id,
                "task": run.task.value,
                "summary": asdict(run.summary),
            }
        )
