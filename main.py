#!/usr/bin/env python3
"""
doipsim - Diagnostic Network Simulator
Runs diagnostic test sequences against a simulated ECU fleet and ranks likely causes on failure.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep doipsim imports lazy (inside functions) so `--help` stays fast.
#


def _build_config(seed: Optional[int], time_scale: Optional[float]):
    from doipsim.config import load_simulator_config

    cfg = load_simulator_config()
    if seed is not None:
        cfg = replace(cfg, seed=seed)
    if time_scale is not None:
        cfg = replace(cfg, time_scale=max(0.0, time_scale))
    return cfg


def run_sequence_file(
    path: str,
    *,
    seed: Optional[int] = None,
    time_scale: Optional[float] = None,
    dump_json: Optional[str] = None,
    out_dir: Optional[str] = None,
) -> int:
    """
    Execute one sequence file and print the report (or JSON).

    Returns the process exit code: 0 on success, 1 when the sequence did not succeed.
    """
    import asyncio
    import json

    from doipsim.dump import execution_to_json_dict
    from doipsim.report import render_execution_report
    from doipsim.sequences import load_sequence
    from doipsim.simulator import DiagnosticSimulator

    sequence = load_sequence(path)
    simulator = DiagnosticSimulator.from_config(_build_config(seed, time_scale))

    if not dump_json:
        print(f"🚗 Running sequence: {sequence.name} ({len(sequence.messages)} steps)")
        print(f"🎯 Target ECUs: {', '.join(sequence.target_ecus)}\n")

    execution = asyncio.run(simulator.run(sequence))

    if out_dir:
        from doipsim.storage.local_store import LocalStorage, save_execution

        keys = save_execution(LocalStorage(base_dir=out_dir), execution)
        logging.getLogger(__name__).info(f"Saved execution to {out_dir}: {', '.join(keys)}")

    # Optional JSON dump: emit ONLY JSON on stdout so `> file.json` stays valid.
    if dump_json:
        payload = execution_to_json_dict(execution, mode=dump_json)  # type: ignore[arg-type]
        print(json.dumps(payload, indent=2, sort_keys=False))
    else:
        print("=" * 80)
        print(render_execution_report(execution))
        print("=" * 80)

    ok = execution.result is not None and execution.result.status == "success"
    return 0 if ok else 1


def list_ecus(*, seed: Optional[int] = None, dump_json: bool = False) -> None:
    import json

    from doipsim.dump import ecus_to_json_list
    from doipsim.simulator import DiagnosticSimulator

    simulator = DiagnosticSimulator.from_config(_build_config(seed, None))
    ecus = simulator.get_all_ecus()
    if dump_json:
        print(json.dumps(ecus_to_json_list(ecus), indent=2))
        return

    print(f"\n📋 ECU fleet ({len(ecus)}):\n")
    print(f"{'ID':<6} {'TYPE':<13} {'STATUS':<9} {'TEMP':>7} {'VOLT':>6} {'SEC':>4}  DTCs")
    print("-" * 60)
    for e in ecus:
        dtcs = ", ".join(e.error_codes) or "-"
        print(
            f"{e.id:<6} {e.type:<13} {e.status:<9} {e.temperature:>6.1f}C {e.voltage:>5.1f}V {e.security_level:>4}  {dtcs}"
        )


def list_patterns(*, dump_json: bool = False) -> None:
    import json

    from doipsim.config import load_simulator_config
    from doipsim.diagnostics.catalog import load_catalog
    from doipsim.dump import patterns_to_json_list

    catalog = load_catalog(load_simulator_config().patterns_file)
    if dump_json:
        print(json.dumps(patterns_to_json_list(list(catalog)), indent=2))
        return

    print(f"\n📚 Failure patterns ({len(catalog)}):\n")
    for p in catalog:
        print(f"[{p.id}] {p.category:<13} {p.pattern}")
        print(f"    {p.description} (avg fix {p.average_fix_time} min, success {p.success_rate:.0%})")


def main(argv=None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Simulate diagnostic test sequences against an ECU fleet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a sequence with a fixed seed and no real waiting
  python main.py run sequences/engine_health.yaml --seed 7 --time-scale 0

  # Show the simulated fleet
  python main.py ecus

  # Show the failure pattern catalog
  python main.py patterns
        """,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--seed", type=int, help="RNG seed (overrides DOIPSIM_SEED)")
    sub = parser.add_subparsers(dest="command")

    p_run = sub.add_parser("run", parents=[common], help="Execute a sequence file (YAML or JSON)")
    p_run.add_argument("sequence_file", metavar="SEQUENCE_FILE")
    p_run.add_argument(
        "--time-scale",
        type=float,
        help="Wall-clock seconds slept per simulated second (0 = no waiting; overrides DOIPSIM_TIME_SCALE)",
    )
    p_run.add_argument(
        "--dump-json",
        nargs="?",
        const="summary",
        choices=["summary", "execution"],
        help="Print execution JSON to stdout instead of the markdown report (default: summary).",
    )
    p_run.add_argument("--out-dir", help="Also write execution.json and report.md under this directory")

    p_ecus = sub.add_parser("ecus", parents=[common], help="List the simulated ECU fleet")
    p_ecus.add_argument("--dump-json", action="store_true", help="Print JSON instead of a table")

    p_patterns = sub.add_parser("patterns", help="List the failure pattern catalog")
    p_patterns.add_argument("--dump-json", action="store_true", help="Print JSON instead of text")

    args = parser.parse_args(argv)

    try:
        if args.command == "run":
            return run_sequence_file(
                args.sequence_file,
                seed=args.seed,
                time_scale=args.time_scale,
                dump_json=args.dump_json,
                out_dir=args.out_dir,
            )
        if args.command == "ecus":
            list_ecus(seed=args.seed, dump_json=args.dump_json)
            return 0
        if args.command == "patterns":
            list_patterns(dump_json=args.dump_json)
            return 0

        parser.print_help()
        return 2

    except Exception as e:
        from doipsim.core.errors import SequenceLoadError

        if isinstance(e, SequenceLoadError):
            print(f"❌ {e}", file=sys.stderr)
            return 2
        print(f"❌ Error during simulation: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    sys.exit(main())
