"""
Render the lab report as Markdown from measured results.

The report is the deliverable: environment, one section per workload with the
results table, the code that was timed and a verdict, then the GIL discussion
and the threads-vs-processes trade-offs.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .bench import Result, speedups
from .environment import RuntimeInfo
from .workloads import download_size, io_wait, primes_below

log = logging.getLogger(__name__)

GLOSSARY = (
    (
        "GIL (Global Interpreter Lock)",
        "Lock inside CPython that lets only one thread execute Python bytecode at a time in a process.",
    ),
    ("I/O-bound task", "Work whose wall-clock time is dominated by waiting on input/output rather than computing."),
    ("CPU-bound task", "Work whose wall-clock time is dominated by computation on a processor core."),
)

TRADE_OFFS = (
    ("Memory", "Shared address space, cheap to start", "Separate interpreter per worker, higher RSS"),
    ("Startup", "Microseconds", "Milliseconds (fork) to much more (spawn)"),
    ("CPU-bound Python code", "Serialized by the GIL", "Runs in parallel, one GIL per process"),
    ("I/O-bound code", "GIL released while waiting, overlaps well", "Works, but pays startup and IPC"),
    ("Data exchange", "Direct, needs locks for shared mutable state", "Pickled across the boundary"),
    ("Failure isolation", "An unhandled crash takes the process down", "A crashed worker leaves the parent alive"),
)


@dataclass(frozen=True)
class Workload:
    """Heading, timed function and explanatory note for one report section."""

    title: str
    code: Callable[..., Any]
    note: str


CPU_PRIMES = Workload(
    "CPU-bound: primes below n",
    primes_below,
    "Trial division in pure Python. The work never waits, so it holds the GIL throughout.",
)
IO_DOWNLOAD = Workload(
    "I/O-bound: downloading URLs",
    download_size,
    "Each task fetches one URL and reports its size in bytes. The time goes to waiting on the network.",
)
IO_SIMULATED = Workload(
    "I/O-bound: simulated waits",
    io_wait,
    "Each task sleeps in place of a network call. time.sleep releases the GIL the way a blocking "
    "socket read does, so the numbers show the shape of an I/O-bound run without a server.",
)


@dataclass
class LabReport:
    title: str
    runtime: RuntimeInfo
    cpu_results: list[Result] = field(default_factory=list)
    io_results: list[Result] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)
    io_workload: Workload = IO_DOWNLOAD


def _table(header: list[str], rows: list[list[str]]) -> str:
    lines = ["| " + " | ".join(header) + " |", "|" + "|".join(" --- " for _ in header) + "|"]
    lines += ["| " + " | ".join(row) + " |" for row in rows]
    return "\n".join(lines)


def _code_block(obj: Any) -> str:
    return "```python\n" + inspect.getsource(obj).rstrip() + "\n```"


def results_table(results: list[Result]) -> str:
    sp = speedups(results)
    rows = []
    for r in results:
        speedup = f"{sp[r.name]:.2f}x" if r.name in sp else "-"
        rows.append(
            [
                r.strategy,
                str(r.workers),
                f"{r.wall_s:.3f}",
                f"{r.ips:.2f}",
                speedup,
                f"{r.sys_cpu_avg:.1f}% / {r.sys_cpu_peak:.1f}%",
                f"{r.proc_rss_mb:.1f}",
            ]
        )
    return _table(["Strategy", "Workers", "Wall (s)", "Items/s", "Speedup", "CPU avg / peak", "ΔRSS (MB)"], rows)


def verdict(results: list[Result]) -> str:
    if not results:
        return "Not run."
    fastest = min(results, key=lambda r: r.wall_s)
    sp = speedups(results).get(fastest.name)
    label = fastest.strategy if fastest.strategy == "serial" else f"{fastest.strategy} with {fastest.workers} workers"
    if sp is None:
        return f"Fastest: {label} ({fastest.wall_s:.3f}s)."
    return f"Fastest: {label} ({fastest.wall_s:.3f}s, {sp:.2f}x over serial)."


def _best_speedup(results: list[Result], strategy: str) -> float | None:
    sp = speedups(results)
    values = [sp[r.name] for r in results if r.strategy == strategy and r.name in sp]
    return max(values) if values else None


def _gil_section(report: LabReport) -> str:
    rt = report.runtime
    parts = ["## The Global Interpreter Lock", ""]
    if rt.gil_enabled:
        parts.append(
            "This run used an interpreter with the GIL enabled: only one thread executes Python bytecode "
            "at a time, so threads cannot add CPU throughput to pure Python code. Blocking I/O calls "
            "release the lock while they wait, which is why threads still help I/O-bound work."
        )
    else:
        parts.append(
            "This run used a free-threaded interpreter with the GIL disabled: threads can execute "
            "Python bytecode in parallel, so the CPU-bound thread numbers are expected to scale "
            "closer to the process numbers than they would on a default build."
        )

    threads = _best_speedup(report.cpu_results, "threads")
    procs = _best_speedup(report.cpu_results, "processes")
    if threads is not None and procs is not None:
        parts += [
            "",
            f"Measured on the CPU-bound workload: best thread speedup {threads:.2f}x, "
            f"best process speedup {procs:.2f}x.",
        ]
    return "\n".join(parts)


def _workload_section(workload: Workload, results: list[Result]) -> str:
    parts = [f"## {workload.title}", "", workload.note, "", _code_block(workload.code), ""]
    if results:
        parts += [results_table(results), "", verdict(results)]
    else:
        parts.append("Not run.")
    return "\n".join(parts)


def render_markdown(report: LabReport) -> str:
    rt = report.runtime
    env_rows = [
        ["Python", f"{rt.implementation} {rt.python_version}"],
        ["Platform", rt.platform],
        ["CPU cores", str(rt.cpu_count)],
        ["GIL enabled", "yes" if rt.gil_enabled else "no"],
        ["Free-threading build", "yes" if rt.free_threading_build else "no"],
        ["Start method", rt.start_method],
    ]
    env_rows += [[k, str(v)] for k, v in report.params.items()]

    sections = [
        f"# {report.title}",
        "",
        "Processes and threads compared on one CPU-bound and one I/O-bound workload. "
        "Each strategy starts its workers and waits for all of them to finish.",
        "",
        "## Environment",
        "",
        _table(["", "Value"], env_rows),
        "",
        _workload_section(CPU_PRIMES, report.cpu_results),
        "",
        _workload_section(report.io_workload, report.io_results),
        "",
        _gil_section(report),
        "",
        "## Trade-offs",
        "",
        _table(["", "Threads", "Processes"], [list(row) for row in TRADE_OFFS]),
        "",
        "## Glossary",
        "",
        "\n".join(f"- **{term}:** {meaning}" for term, meaning in GLOSSARY),
        "",
    ]
    return "\n".join(sections)


def write_report(report: LabReport, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_markdown(report), encoding="utf-8")
    log.info("report written to %s", path)
    return path
