from __future__ import annotations

import threading
from pathlib import Path

import pytest

from contractctl.compiler.pipeline import CompileOptions
from contractctl.compiler.watch import CoalescingRunner, snapshot, watch, watched_files
from contractctl.core.context import RunContext
from contractctl.errors import ScriptError


def test_triggers_during_a_run_collapse_into_one_follow_up() -> None:
    release = threading.Event()
    started = threading.Event()
    calls: list[int] = []

    def work() -> None:
        calls.append(len(calls))
        started.set()
        release.wait(5)

    runner = CoalescingRunner(work)
    assert runner.trigger() is True
    assert started.wait(5)
    assert runner.trigger() is False
    assert runner.trigger() is False
    assert runner.trigger() is False
    release.set()
    assert runner.wait_idle(5)
    assert calls == [0, 1]
    assert runner.runs == 2
    assert not runner.running


def test_errors_are_reported_and_runner_recovers() -> None:
    seen: list[str] = []

    def fail() -> None:
        raise ScriptError("boom", 12, kind="lint_failed")

    runner = CoalescingRunner(fail, on_error=lambda exc: seen.append(exc.kind))
    runner.trigger()
    assert runner.wait_idle(5)
    runner.trigger()
    assert runner.wait_idle(5)
    assert seen == ["lint_failed", "lint_failed"]
    assert not runner.running


def test_snapshot_tracks_content_changes(project_root: Path) -> None:
    files = watched_files(project_root / "manifest.yaml", project_root / "rules")
    assert files[0] == project_root / "manifest.yaml"
    assert len(files) == 5
    before = snapshot(files)
    (project_root / "rules" / "gov" / "gov-header-001.md").write_text("# [GOV-HEADER-001] changed text\n", encoding="utf-8")
    assert snapshot(files) != before
    assert snapshot([project_root / "gone.md"]) == ((str((project_root / "gone.md").as_posix()), -1, -1),)


@pytest.mark.slow
def test_watch_recompiles_after_a_change(project_root: Path) -> None:
    ctx = RunContext.from_args("watch-test", str(project_root), quiet=True)
    options = CompileOptions(manifest=project_root / "manifest.yaml", rules=project_root / "rules")
    stop = threading.Event()
    compiled = threading.Semaphore(0)

    def fake_compile(_ctx: RunContext, _options: CompileOptions) -> None:
        compiled.release()

    worker = threading.Thread(target=watch, args=(ctx, options), kwargs={"interval": 0.02, "stop": stop, "compile_fn": fake_compile})
    worker.start()
    try:
        assert compiled.acquire(timeout=5)
        (project_root / "rules" / "new.md").write_text("[GOV-NEW-001]\n", encoding="utf-8")
        assert compiled.acquire(timeout=5)
    finally:
        stop.set()
        worker.join(5)
    assert not worker.is_alive()


@pytest.mark.slow
def test_edit_during_first_compile_triggers_a_rerun(project_root: Path) -> None:
    ctx = RunContext.from_args("watch-test", str(project_root), quiet=True)
    options = CompileOptions(manifest=project_root / "manifest.yaml", rules=project_root / "rules")
    stop = threading.Event()
    compiled = threading.Semaphore(0)
    calls: list[int] = []

    def editing_compile(_ctx: RunContext, _options: CompileOptions) -> None:
        calls.append(len(calls))
        if len(calls) == 1:
            (project_root / "rules" / "late.md").write_text("[GOV-LATE-001]\n", encoding="utf-8")
        compiled.release()

    worker = threading.Thread(
        target=watch, args=(ctx, options), kwargs={"interval": 0.02, "stop": stop, "compile_fn": editing_compile}
    )
    worker.start()
    try:
        assert compiled.acquire(timeout=5)
        assert compiled.acquire(timeout=5)
    finally:
        stop.set()
        worker.join(5)
    assert not worker.is_alive()
    assert len(calls) >= 2
