import argparse
import os
import sys
import time
from pathlib import Path

import msgspec
from rich.console import Console

from gpuscope.analyzers.performance_analyzer import PerformanceAnalyzer
from gpuscope.analyzers.report import encode_report, export_report, load_report
from gpuscope.database.history_writer import load_session
from gpuscope.manager.telemetry_monitor import TelemetryMonitor
from gpuscope.renderers.report_renderer import render_session_report
from gpuscope.runtime.settings import MonitorSettings
from gpuscope.samplers.schema.architecture import get_baseline, known_architectures
from gpuscope.samplers.simulated_sampler import SimulatedSampler
from gpuscope.samplers.validator import TelemetryValidator


def resolve_baseline(name: str):
    if not name:
        return None
    baseline = get_baseline(name)
    if baseline is None:
        print(
            f"Error: Unknown architecture '{name}'. "
            f"Known: {', '.join(known_architectures())}",
            file=sys.stderr,
        )
        sys.exit(1)
    return baseline


def validate_input_path(path: str) -> str:
    p = Path(path)
    if not p.exists():
        print(f"Error: File '{path}' not found.", file=sys.stderr)
        sys.exit(1)
    return str(p.resolve())


def prepare_log_directory(log_dir: str = "./logs") -> str:
    if not log_dir:
        timestamp = time.strftime("%Y-%m-%d_%H-%M-%S")
        log_dir = os.path.join(os.getcwd(), f".gpuscope_runs/{timestamp}")
    os.makedirs(log_dir, exist_ok=True)
    return str(Path(log_dir).resolve())


def run_monitor(args, console: Console = None) -> int:
    console = console or Console()
    baseline = resolve_baseline(args.architecture)
    settings = MonitorSettings(
        period_ms=args.interval_ms,
        history_capacity=args.capacity,
        mode="none" if args.no_display else "cli",
        enable_logging=args.enable_logging,
        logs_dir=prepare_log_directory(args.logs_dir),
    )
    monitor = TelemetryMonitor(
        SimulatedSampler(baseline=baseline, seed=args.seed),
        settings=settings,
        baseline=baseline,
    )

    if args.record:
        monitor.start_recording()

    monitor.start()
    try:
        if args.duration > 0:
            time.sleep(args.duration)
        else:
            while True:
                time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()

    if monitor.rejected_count:
        console.print(f"[yellow]Dropped {monitor.rejected_count} invalid samples[/yellow]")

    if not args.record:
        return 0

    report = monitor.analyze_recording(monitor.stop_recording())
    if report is None:
        console.print("[red]No samples recorded[/red]")
        return 1

    console.print(render_session_report(report.to_wire()))
    if args.export:
        path = export_report(report, args.export)
        console.print(f"Report exported to {path}")
    return 0


def run_analyze(args, console: Console = None) -> int:
    console = console or Console()
    path = validate_input_path(args.session)
    baseline = resolve_baseline(args.architecture)

    try:
        samples = load_session(path, TelemetryValidator(baseline))
    except msgspec.DecodeError as e:
        print(f"Error: '{path}' is not a valid JSONL session: {e}", file=sys.stderr)
        return 1

    analyzer = PerformanceAnalyzer(baseline=baseline)
    report = analyzer.analyze_session(samples, session_id=Path(path).stem)
    if report is None:
        print(f"Error: '{path}' contains no valid samples.", file=sys.stderr)
        return 1

    if args.json:
        sys.stdout.write(msgspec.json.format(encode_report(report), indent=2).decode())
        sys.stdout.write("\n")
    else:
        console.print(render_session_report(report.to_wire()))

    if args.export:
        export_report(report, args.export)
    return 0


def run_inspect(args, console: Console = None) -> int:
    console = console or Console()
    path = validate_input_path(args.file)
    try:
        report = load_report(path)
    except msgspec.DecodeError as e:
        print(f"Error: '{path}' is not a valid report: {e}", file=sys.stderr)
        return 1
    console.print(render_session_report(report))
    return 0


def build_parser():
    parser = argparse.ArgumentParser("gpuscope")

    sub = parser.add_subparsers(dest="command", required=True)

    monitor_parser = sub.add_parser("monitor")
    monitor_parser.add_argument("--interval-ms", type=float, default=100.0)
    monitor_parser.add_argument("--duration", type=float, default=0.0)
    monitor_parser.add_argument("--capacity", type=int, default=1000)
    monitor_parser.add_argument("--architecture", type=str, default="NVIDIA RTX 4090")
    monitor_parser.add_argument("--seed", type=int, default=None)
    monitor_parser.add_argument("--record", action="store_true")
    monitor_parser.add_argument("--export", type=str, default=None)
    monitor_parser.add_argument("--no-display", action="store_true")
    monitor_parser.add_argument("--enable-logging", action="store_true")
    monitor_parser.add_argument("--logs-dir", type=str, default="./logs")

    analyze_parser = sub.add_parser("analyze")
    analyze_parser.add_argument("session")
    analyze_parser.add_argument("--architecture", type=str, default="")
    analyze_parser.add_argument("--export", type=str, default=None)
    analyze_parser.add_argument("--json", action="store_true")

    inspect_parser = sub.add_parser("inspect")
    inspect_parser.add_argument("file")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "monitor":
        sys.exit(run_monitor(args))
    elif args.command == "analyze":
        sys.exit(run_analyze(args))
    elif args.command == "inspect":
        sys.exit(run_inspect(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
