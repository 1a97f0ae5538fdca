from __future__ import annotations

import time

import pytest

from gil_lab.bench import Result, measure, print_results, speedups


def _result(name: str, strategy: str, wall_s: float, workload: str = "cpu", workers: int = 1) -> Result:
    return Result(
        name=name,
        strategy=strategy,
        workload=workload,
        wall_s=wall_s,
        items=10,
        workers=workers,
        proc_rss_mb=0.0,
        sys_cpu_avg=0.0,
        sys_cpu_peak=0.0,
    )


def test_measure_records_wall_time() -> None:
    r = measure(lambda: time.sleep(0.1), name="sleep", items=4, strategy="serial", workload="io",
                cpu_sample_interval_s=0.02)
    assert r.wall_s >= 0.1
    assert r.items == 4
    assert r.ips == pytest.approx(4 / r.wall_s)
    assert 0.0 <= r.sys_cpu_avg <= r.sys_cpu_peak <= 100.0


def test_measure_stops_sampler_when_fn_raises() -> None:
    def boom() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        measure(boom, name="boom", items=1, strategy="serial", workload="cpu", cpu_sample_interval_s=0.01)


def test_ips_is_zero_for_zero_wall() -> None:
    assert _result("x", "serial", 0.0).ips == 0.0


def test_speedups_are_per_workload() -> None:
    results = [
        _result("cpu-serial", "serial", 4.0),
        _result("cpu-processes(4)", "processes", 1.0, workers=4),
        _result("io-serial", "serial", 10.0, workload="io"),
        _result("io-threads(8)", "threads", 0.5, workload="io", workers=8),
        _result("io-instant", "threads", 0.0, workload="io"),
    ]
    sp = speedups(results)
    assert sp["cpu-serial"] == 1.0
    assert sp["cpu-processes(4)"] == 4.0
    assert sp["io-threads(8)"] == 20.0
    assert sp["io-instant"] == float("inf")


def test_speedups_skip_workloads_without_baseline() -> None:
    assert speedups([_result("cpu-threads(2)", "threads", 1.0)]) == {}


def test_print_results(capsys: pytest.CaptureFixture[str]) -> None:
    print_results([_result("cpu-serial", "serial", 2.0), _result("cpu-threads(2)", "threads", 1.0)])
    out = capsys.readouterr().out
    assert "cpu-threads(2)" in out
    assert "2.00x" in out
