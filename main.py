import argparse
import logging
from dataclasses import replace

from battery.app import TASK_NAMES, BatteryApp
from config.settings import BatteryConfig, quick

TASK_ALIASES = {"it": "inspection_time", "ds": "digit_span", "fl": "flanker"}


def parse_args():
    parser = argparse.ArgumentParser(description="Run the line / digit span / flanker task battery")
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--fps", type=int, default=60, help="display refresh rate, sets the frame grid")
    parser.add_argument("--tasks", default="it,ds,fl", help="comma separated: it, ds, fl")
    parser.add_argument("--events", default="data/events.jsonl")
    parser.add_argument("--quick", action="store_true", help="a couple of trials per block")
    parser.add_argument("--windowed", action="store_true")
    parser.add_argument("--no-intro", action="store_true", help="skip the SPACE-to-start screens")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def build_config(args) -> BatteryConfig:
    cfg = BatteryConfig()
    tasks = tuple(TASK_ALIASES.get(t.strip(), t.strip()) for t in args.tasks.split(",") if t.strip())
    unknown = [t for t in tasks if t not in TASK_NAMES]
    if unknown:
        raise SystemExit(f"Unknown task(s): {', '.join(unknown)}")

    cfg = replace(
        cfg,
        window=replace(cfg.window, fps=args.fps, fullscreen=not args.windowed),
        timing=replace(cfg.timing, frame_ms=1000 / args.fps),
        inspection_time=replace(cfg.inspection_time, exposure_min_ms=1000 / args.fps),
        session=replace(
            cfg.session,
            seed=args.seed,
            tasks=tasks,
            events_path=args.events,
            intro_enabled=not args.no_intro,
        ),
    )
    if args.quick:
        cfg = quick(cfg)
    return cfg


def main():
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = BatteryApp(build_config(args))
    session = app.run()

    print(f"Session {session.session_id} finished")
    for run in session.runs:
        print(run.task.value, run.summary)


if __name__ == "__main__":
    main()
