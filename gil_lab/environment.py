from __future__ import annotations

import multiprocessing
import os
import platform
import sys
import sysconfig
from dataclasses import dataclass


@dataclass(frozen=True)
class RuntimeInfo:
    """What the interpreter says about itself; the report's numbers depend on it."""

    python_version: str
    implementation: str
    platform: str
    cpu_count: int
    gil_enabled: bool
    free_threading_build: bool
    start_method: str


def gil_enabled() -> bool:
    checker = getattr(sys, "_is_gil_enabled", None)
    if checker is None:
        # before 3.13 every CPython build has the GIL
        return True
    return bool(checker())


def detect_runtime() -> RuntimeInfo:
    v = sys.version_info
    return RuntimeInfo(
        python_version=f"{v.major}.{v.minor}.{v.micro}",
        implementation=platform.python_implementation(),
        platform=platform.platform(terse=True),
        cpu_count=os.cpu_count() or 1,
        gil_enabled=gil_enabled(),
        free_threading_build=bool(sysconfig.get_config_var("Py_GIL_DISABLED")),
        start_method=multiprocessing.get_start_method(allow_none=False),
    )
