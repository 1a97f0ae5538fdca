"""
gil-lab: threads vs processes on CPU-bound and I/O-bound Python work.

Usage:
  gil-lab cpu --n 200000 --tasks 8 --workers 1,2,4,8
  gil-lab serve --port 8008            # in another terminal, for the io suite
  gil-lab io --count 50 --size 65536 --delay-ms 100 --workers 1,4,16
  gil-lab io --simulate --wait 0.2     # no HTTP, time.sleep instead
  gil-lab fork-join --kind cpu --workers 4
  gil-lab report --out report.md --simulate

Defaults come from the environment / .env (see gil_lab.config).
"""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from typing import Sequence

from .bench import Result, measure, print_results
from .config import START_METHODS, Settings, load_settings, parse_workers
from .environment import detect_runtime
from .errors import LabError
from .lab import CPU, IO, build_urls, run_cpu_suite, run_io_suite, run_simulated_io_suite
from .logging_config import setup_logging
from .report import IO_DOWNLOAD, IO_SIMULATED, LabReport, write_report
from .runners import fork_join_processes, fork_join_threads
from .workloads import count_primes_below, download_size, io_wait

log = logging.getLogger(__name__)


def _add_common(p: argparse.ArgumentParser, settings: Settings) -> None:
    p.add_argument(
        "--workers",
        type=parse_workers,
        default=settings.workers,
        help="Comma-separated worker counts to sweep.",
    )
    p.add_argument("--start-method", choices=START_METHODS, default=settings.start_method)
    p.add_argument("--cpu-sample", type=float, default=0.2, help="CPU sampling interval (s).")


def _add_cpu_args(p: argparse.ArgumentParser, settings: Settings) -> None:
    p.add_argument("--n", type=int, default=settings.prime_bound, help="List primes below n.")
    p.add_argument("--tasks", type=int, default=settings.tasks, help="Copies of the workload.")


def _add_io_args(p: argparse.ArgumentParser, settings: Settings) -> None:
    p.add_argument("--urls", nargs="+", help="Download these URLs instead of the local service.")
    p.add_argument("--base-url", default=settings.http_base, help="Local HTTP service base URL.")
    p.add_argument("--count", type=int, default=50, help="Number of URLs against the local service.")
    p.add_argument("--size", type=int, default=64 * 1024, help="Bytes per response.")
    p.add_argument("--delay-ms", type=int, default=100, help="Server-side delay per response.")
    p.add_argument("--timeout", type=float, default=settings.http_timeout_s)
    p.add_argument("--retries", type=int, default=settings.retries)
    p.add_argument("--backoff", type=float, default=settings.backoff_s)
    p.add_argument("--simulate", action="store_true", help="Use time.sleep instead of HTTP.")
    p.add_argument("--wait", type=float, default=0.2, help="Sleep per task with --simulate.")
    p.add_argument("--io-tasks", type=int, default=50, help="Tasks with --simulate.")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gil-lab", description="Threads vs processes in Python.")
    ap.add_argument("--log-level", default=None)
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("cpu", help="CPU-bound: primes below n.")
    _add_cpu_args(p, settings)
    _add_common(p, settings)

    p = sub.add_parser("io", help="I/O-bound: download URLs.")
    _add_io_args(p, settings)
    _add_common(p, settings)

    p = sub.add_parser("fork-join", help="Start N raw threads / processes and join them.")
    p.add_argument("--kind", choices=[CPU, IO], default=CPU)
    p.add_argument("--workers", type=int, default=4)
    p.add_argument("--n", type=int, default=settings.prime_bound)
    p.add_argument("--wait", type=float, default=0.5, help="Sleep per worker for --kind io.")
    p.add_argument("--url", help="Download this URL per worker for --kind io instead of sleeping.")
    p.add_argument("--start-method", choices=START_METHODS, default=settings.start_method)

    p = sub.add_parser("report", help="Run both suites and write the Markdown report.")
    p.add_argument("--out", default="report.md")
    p.add_argument("--title", default="Processes vs Threads in Python")
    _add_cpu_args(p, settings)
    _add_io_args(p, settings)
    _add_common(p, settings)

    p = sub.add_parser("serve", help="Run the local HTTP service.")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8008)

    return ap


def _io_results(args: argparse.Namespace) -> list[Result]:
    if args.simulate:
        return run_simulated_io_suite(
            args.wait, args.io_tasks, args.workers, args.start_method, args.cpu_sample
        )
    urls = args.urls or build_urls(args.base_url, args.count, args.size, args.delay_ms)
    return run_io_suite(
        urls,
        args.workers,
        timeout_s=args.timeout,
        retries=args.retries,
        backoff_s=args.backoff,
        start_method=args.start_method,
        cpu_sample_interval_s=args.cpu_sample,
    )


def cmd_cpu(args: argparse.Namespace) -> int:
    print(f"Primes below {args.n} x {args.tasks} tasks | workers: {list(args.workers)}")
    print("Work is pure Python => threads should NOT scale well.")
    results = run_cpu_suite(args.n, args.tasks, args.workers, args.start_method, args.cpu_sample)
    print_results(results)
    print("\nExpected:")
    print("- Threads ~= Serial (sometimes worse due to overhead)")
    print("- Processes faster (until overhead dominates)")
    return 0


def cmd_io(args: argparse.Namespace) -> int:
    results = _io_results(args)
    print_results(results)
    print("\nExpected: threads and asyncio much faster than serial for I/O wait.")
    return 0


def cmd_fork_join(args: argparse.Namespace) -> int:
    if args.kind == CPU:
        fn, items = count_primes_below, [args.n] * args.workers
    elif args.url:
        fn, items = partial(download_size, timeout_s=30.0), [args.url] * args.workers
    else:
        fn, items = io_wait, [args.wait] * args.workers

    results = [
        measure(
            lambda: fork_join_threads(fn, items),
            name=f"{args.kind}-threads({args.workers})",
            items=len(items),
            strategy="threads",
            workload=args.kind,
            workers=args.workers,
        ),
        measure(
            lambda: fork_join_processes(fn, items, args.start_method),
            name=f"{args.kind}-processes({args.workers})",
            items=len(items),
            strategy="processes",
            workload=args.kind,
            workers=args.workers,
        ),
    ]
    print_results(results)
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    cpu = run_cpu_suite(args.n, args.tasks, args.workers, args.start_method, args.cpu_sample)
    io = _io_results(args)
    params = {
        "Prime bound (n)": args.n,
        "CPU tasks": args.tasks,
        "Worker sweep": ", ".join(str(w) for w in args.workers),
        "I/O source": f"time.sleep({args.wait})" if args.simulate else (
            "custom URLs" if args.urls else f"{args.base_url} ({args.size} B, {args.delay_ms} ms)"
        ),
    }
    report = LabReport(
        title=args.title,
        runtime=detect_runtime(),
        cpu_results=cpu,
        io_results=io,
        params=params,
        io_workload=IO_SIMULATED if args.simulate else IO_DOWNLOAD,
    )
    path = write_report(report, args.out)
    print(f"Report: {path}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .http_service import serve

    serve(args.host, args.port)
    return 0


COMMANDS = {
    "cpu": cmd_cpu,
    "io": cmd_io,
    "fork-join": cmd_fork_join,
    "report": cmd_report,
    "serve": cmd_serve,
}


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = load_settings()
    except LabError as e:
        print(f"gil-lab: {e}", file=sys.stderr)
        return 1

    args = build_parser(settings).parse_args(argv)

    try:
        setup_logging(args.log_level)
        return COMMANDS[args.command](args)
    except LabError as e:
        log.debug("command failed", exc_info=True)
        print(f"gil-lab: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
