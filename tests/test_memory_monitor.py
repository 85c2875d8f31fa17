from collections import namedtuple

import pytest

from check_mem.models.memory import CheckOptions, MemorySnapshot
from check_mem.models.quantity import Status
from check_mem.services import memory_monitor
from check_mem.services.report import render_report

FakeVirtualMemory = namedtuple(
    "FakeVirtualMemory", ["total", "available", "percent", "used", "free", "shared", "buffers"]
)

EXPECTED_OK_LINE = (
    "OK: "
    "|'used'=900.000000B;900.000000;950.000000;0;1000.000000"
    "|'free'=100.000000B;100.000000;50.000000;0;1000.000000"
    "|'shared'=0.000000B;U;U;0;1000.000000"
    "|'buffer'=0.000000B;U;U;0;1000.000000"
    "|'used'=90.000000%;90.000000;95.000000;0;100.000000"
    "|'free'=10.000000%;10.000000;5.000000;0;100.000000"
    "|'shared'=0.000000%;U;U;0;100.000000"
    "|'buffer'=0.000000%;U;U;0;100.000000"
)


def test_read_memory_snapshot_uses_psutil(monkeypatch):
    fake = FakeVirtualMemory(
        total=8000, available=5000, percent=37.5, used=3000,
        free=4000, shared=100, buffers=200,
    )
    monkeypatch.setattr(memory_monitor.psutil, "virtual_memory", lambda: fake)

    snapshot = memory_monitor.read_memory_snapshot()

    assert snapshot == MemorySnapshot(
        total=8000, free=4000, shared=100, buffer=200, unit_size=1
    )


def test_read_memory_snapshot_wraps_os_errors(monkeypatch):
    def fake_virtual_memory():
        raise OSError("/proc/meminfo not readable")

    monkeypatch.setattr(memory_monitor.psutil, "virtual_memory", fake_virtual_memory)

    with pytest.raises(memory_monitor.SnapshotError):
        memory_monitor.read_memory_snapshot()


def test_read_memory_snapshot_rejects_zero_total(monkeypatch):
    fake = FakeVirtualMemory(
        total=0, available=0, percent=0.0, used=0, free=0, shared=0, buffers=0,
    )
    monkeypatch.setattr(memory_monitor.psutil, "virtual_memory", lambda: fake)

    with pytest.raises(memory_monitor.SnapshotError):
        memory_monitor.read_memory_snapshot()


def test_build_quantities_derives_used_memory():
    snapshot = MemorySnapshot(total=1000, free=100, shared=50, buffer=150)
    quantities = memory_monitor.build_quantities(snapshot, CheckOptions())

    assert quantities["used"].value == 700
    assert all(q.maximum == 1000 for q in quantities.values())
    assert not any(q.limits_configured for q in quantities.values())


def test_build_quantities_clamps_inconsistent_counters():
    snapshot = MemorySnapshot(total=1000, free=900, shared=200, buffer=0)
    quantities = memory_monitor.build_quantities(snapshot, CheckOptions())
    assert quantities["used"].value == 0


def test_run_check_boundaries_do_not_breach():
    options = CheckOptions(
        unit_exponent=0,
        free={"warning": 10, "critical": 5},
        used={"warning": 90, "critical": 95},
    )
    snapshot = MemorySnapshot(total=1000, free=100, shared=0, buffer=0)

    result = memory_monitor.run_check(options, snapshot)

    assert result.status == "OK"
    assert result.exit_code == 0
    assert result.reason == ""
    assert result.output == EXPECTED_OK_LINE


def test_run_check_reads_snapshot_when_none_given(monkeypatch):
    snapshot = MemorySnapshot(total=1000, free=30, shared=0, buffer=0)
    monkeypatch.setattr(memory_monitor, "read_memory_snapshot", lambda: snapshot)

    result = memory_monitor.run_check(
        CheckOptions(used={"warning": 90, "critical": 95})
    )

    assert result.status == "CRITICAL"
    assert result.exit_code == 2
    assert result.reason == "97% > 95%"
    assert result.output.startswith("CRITICAL: 97% > 95%|'used'=")


def test_render_report_with_megabytes():
    mib = 1024 * 1024
    snapshot = MemorySnapshot(total=4 * mib, free=2 * mib, shared=0, buffer=mib)
    quantities = memory_monitor.build_quantities(snapshot, CheckOptions())

    line = render_report(Status.WARNING, "8% < 10%", quantities, mib, "MB")

    blocks = line.split("|")
    assert blocks[0] == "WARNING: 8% < 10%"
    assert blocks[1] == "'used'=1.000000MB;U;U;0;4.000000"
    assert blocks[4] == "'buffer'=1.000000MB;U;U;0;4.000000"
    assert blocks[6] == "'free'=50.000000%;U;U;0;100.000000"
    assert len(blocks) == 9
