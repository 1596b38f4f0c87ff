#!/usr/bin/env python3
"""
main.py - Orchestrator for the plant engine

Usage examples:
    python main.py replay --file samples.jsonl
    python main.py replay --file samples.jsonl --realtime --store data/store.json
    python main.py sim_run --steps 96 --scenario drying
    python main.py score --soil 550 --temp 23 --hum 60 --gas 200 --rain 900 --bio 8

This script expects to be run from the project root.
"""
import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from config import engine_config, load_config
from engine.care import care_targets_from_profile
from engine.comfort import instant_metrics, overall_health, score_sample
from engine.models import RawSample
from engine.pipeline import PlantEngine
from engine.states import derive_mood, derive_state, emotion_message
from engine.storage import JsonFileStore
from engine.wire import WireFormatError, parse_payload
from sim.sensors import SCENARIOS, SensorModel

ROOT = Path(__file__).resolve().parent
logger = logging.getLogger(__name__)


def setup_logging(cmd, log_dir=None):
    log_dir = Path(log_dir) if log_dir else ROOT / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"{cmd}_{timestamp}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s | %(levelname)s | %(message)s',
        handlers=[
            logging.FileHandler(log_file, mode='w'),
            logging.StreamHandler()  # Also print to console
        ]
    )
    return log_file


def _load_cfg(args):
    path = getattr(args, 'config', None)
    try:
        return load_config(path)
    except FileNotFoundError:
        if path:
            raise
        print("[main] No config/defaults.yaml found, using built-in defaults")
        return {}


def _build_engine(cfg, args):
    store = None
    store_path = getattr(args, 'store', None) or (cfg.get('storage') or {}).get('path')
    if store_path:
        store = JsonFileStore(store_path)
        print(f"[main] Persisting watering state to {store_path}")
    engine = PlantEngine(engine_config(cfg), store=store)
    if getattr(args, 'realtime', False):
        engine.set_realtime_mode(True)
    return engine


def _log_output(step, out):
    s = out.scores
    m = out.comfort_metrics
    logger.info(
        f"step={step} | state={out.emotion_state.value} | hyd={s.hydration} comfort={s.comfort} "
        f"air={s.air_quality} bio={s.bio_signal} | health={out.overall_health} | "
        f"pcs={m.pcs:.3f} soil%={m.soil_percent:.1f} | Wi={out.watering_index:.3f} Gi={out.gas_index:.3f}"
        f"{' | published' if out.changed else ''}"
    )
    if out.event is not None:
        logger.info(f"EVENT {out.event.id}: {out.event.message}")


def _summary(engine, n, last):
    reminder = engine.reminder
    summary = {
        'samples': n,
        'transitions': len(engine.events),
        'final_state': last.emotion_state.value if last else engine.emotion.value,
        'reminder': None if reminder is None else {
            'due_at': reminder.due_at,
            'urgent': reminder.is_urgent,
        },
        'last_watered_at': engine.last_watered_at,
    }
    print(f"[main] Samples: {summary['samples']}, transitions: {summary['transitions']}, "
          f"final state: {summary['final_state']}")
    if reminder is not None:
        print(f"[main] Reminder: {reminder.message} (urgent={reminder.is_urgent})")
    return summary


def replay(args):
    path = Path(args.file)
    if not path.exists():
        raise FileNotFoundError(f"Sample file not found: {path}")
    cfg = _load_cfg(args)
    engine = _build_engine(cfg, args)
    log_file = setup_logging("replay", getattr(args, 'log_dir', None))

    logger.info("=" * 80)
    logger.info("REPLAY STARTED")
    logger.info(f"Input: {path}")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)
    print(f"[main] Replaying {path} ...")

    n, skipped, last = 0, 0, None
    with open(path, 'r', encoding='utf-8') as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                sample = parse_payload(line)
            except WireFormatError as e:
                skipped += 1
                logger.warning(f"Skipping line {lineno}: {e}")
                continue
            last = engine.ingest(sample)
            n += 1
            _log_output(n, last)

    if skipped:
        print(f"[main] Skipped {skipped} malformed line(s)")
    summary = _summary(engine, n, last)
    summary['skipped'] = skipped
    return summary


def sim_run(args):
    cfg = _load_cfg(args)
    sim_cfg = dict(cfg.get('sim', {}) or {})
    if args.seed is not None:
        sim_cfg['seed'] = args.seed
    steps = args.steps or 48
    interval = args.interval or sim_cfg.get('interval', 300)
    scenario = args.scenario or 'nominal'
    if scenario not in SCENARIOS:
        raise ValueError(f"Unknown scenario '{scenario}'. Choose from {sorted(SCENARIOS)}")

    engine = _build_engine(cfg, args)
    sensors = SensorModel(sim_cfg)
    log_file = setup_logging("sim_run", getattr(args, 'log_dir', None))

    logger.info("=" * 80)
    logger.info("SIMULATION RUN STARTED")
    logger.info(f"Steps: {steps}")
    logger.info(f"Scenario: {scenario}")
    logger.info(f"Interval: {interval}s")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)
    print(f"[main] Running '{scenario}' for {steps} steps ...")

    t0 = args.start if getattr(args, 'start', None) is not None else time.time()
    last = None
    for step in range(steps):
        sensors.apply_scenario(scenario, step)
        sample = sensors.read(timestamp=t0 + step * interval)
        last = engine.ingest(sample)
        _log_output(step, last)

    return _summary(engine, steps, last)


def score(args):
    """One-shot scoring of a single sample; no temporal state."""
    cfg = _load_cfg(args)
    sample = RawSample(
        soil_moisture=args.soil,
        temperature=args.temp,
        humidity=args.hum,
        gas_level=args.gas,
        wetness_contact=args.rain,
        bio_signal=args.bio,
        timestamp=time.time(),
    )
    scores = score_sample(sample, float(cfg.get('gas_baseline', 200.0)))
    state = derive_state(scores, sample, cfg.get('states'))
    metrics = instant_metrics(sample, care_targets_from_profile(cfg.get('care_targets')))
    result = {
        'hydration': scores.hydration,
        'comfort': scores.comfort,
        'air_quality': scores.air_quality,
        'bio_signal': scores.bio_signal,
        'overall_health': overall_health(scores),
        'soil_percent': round(metrics.soil_percent, 1),
        'pcs': round(metrics.pcs, 3),
        'state': state.value,
        'mood': derive_mood(scores).value,
        'message': emotion_message(state),
    }
    print(json.dumps(result, indent=2))
    return result


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Plant engine - main orchestrator")
    sub = p.add_subparsers(dest="cmd")

    r = sub.add_parser("replay", help="Feed a JSONL file of sensor payloads through the engine")
    r.add_argument("--file", type=str, required=True, help="one payload per line")
    r.add_argument("--realtime", action='store_true', help="publish every smoothed update")
    r.add_argument("--store", type=str, default=None, help="JSON file for watering persistence")
    r.add_argument("--config", type=str, default=None, help="config YAML (default: config/defaults.yaml)")
    r.add_argument("--log_dir", type=str, default=None, help="log directory (default: logs/)")

    s = sub.add_parser("sim_run", help="Drive the engine from the sensor simulator")
    s.add_argument("--steps", type=int, help="samples to generate")
    s.add_argument("--scenario", type=str, default=None, help=f"one of {sorted(SCENARIOS)}")
    s.add_argument("--interval", type=float, default=None, help="seconds between samples")
    s.add_argument("--seed", type=int, default=None, help="simulator seed")
    s.add_argument("--start", type=float, default=None, help="timestamp of the first sample (default: now)")
    s.add_argument("--realtime", action='store_true', help="publish every smoothed update")
    s.add_argument("--store", type=str, default=None, help="JSON file for watering persistence")
    s.add_argument("--config", type=str, default=None, help="config YAML (default: config/defaults.yaml)")
    s.add_argument("--log_dir", type=str, default=None, help="log directory (default: logs/)")

    sc = sub.add_parser("score", help="Score a single reading")
    sc.add_argument("--soil", type=float, required=True, help="soil ADC (lower = wetter)")
    sc.add_argument("--temp", type=float, required=True, help="temperature °C")
    sc.add_argument("--hum", type=float, required=True, help="humidity %%RH")
    sc.add_argument("--gas", type=float, required=True, help="MQ-2 ADC")
    sc.add_argument("--rain", type=float, default=1023.0, help="wetness contact ADC (lower = wetter)")
    sc.add_argument("--bio", type=float, default=8.0, help="bio signal amplitude")
    sc.add_argument("--config", type=str, default=None, help="config YAML (default: config/defaults.yaml)")

    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if not args.cmd:
        print("No command given. Use -h to see options.")
        return 1
    if args.cmd == "replay":
        replay(args)
    elif args.cmd == "sim_run":
        sim_run(args)
    elif args.cmd == "score":
        score(args)
    else:
        print("Unknown command:", args.cmd)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
