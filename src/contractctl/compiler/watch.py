"""Polling watch mode.

The manifest and the rule corpus are polled as an (mtime, size) snapshot. A
change is acted on once two consecutive polls agree, and re-runs go through a
`CoalescingRunner` so a burst of edits costs at most one extra compile.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Iterable

from ..core.context import RunContext
from ..core.fs import iter_files
from ..core.logging import log_event
from ..corpus.extract import RULE_SUFFIX
from ..errors import ScriptError
from .pipeline import CompileOptions, run_compile

Snapshot = tuple[tuple[str, int, int], ...]


def watched_files(manifest: Path, rules: Path) -> list[Path]:
    files = [manifest]
    if rules.is_dir():
        files += iter_files(rules, {RULE_SUFFIX})
    return files


def snapshot(paths: Iterable[Path]) -> Snapshot:
    rows: list[tuple[str, int, int]] = []
    for path in paths:
        try:
            st = path.stat()
        except FileNotFoundError:
            rows.append((path.as_posix(), -1, -1))
            continue
        rows.append((path.as_posix(), st.st_mtime_ns, st.st_size))
    return tuple(sorted(rows))


class CoalescingRunner:
    """Runs `fn` on a worker thread, one run at a time.

    Triggers that arrive while a run is in flight collapse into a single
    follow-up run.
    """

    def __init__(self, fn: Callable[[], object], on_error: Callable[[ScriptError], None] | None = None) -> None:
        self._fn = fn
        self._on_error = on_error
        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self._idle = threading.Event()
        self._idle.set()
        self.runs = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def trigger(self) -> bool:
        """Start a run, or queue one follow-up; returns False when the trigger was coalesced."""
        with self._lock:
            if self._running:
                self._pending = True
                return False
            self._running = True
            self._idle.clear()
        threading.Thread(target=self._drain, name="contractctl-watch", daemon=True).start()
        return True

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._idle.wait(timeout)

    def _run_once(self) -> None:
        self.runs += 1
        try:
            self._fn()
        except ScriptError as exc:
            if self._on_error is None:
                raise
            self._on_error(exc)

    def _drain(self) -> None:
        finished = False
        try:
            while True:
                self._run_once()
                with self._lock:
                    if not self._pending:
                        self._running = False
                        self._idle.set()
                        finished = True
                        return
                    self._pending = False
        finally:
            if not finished:
                with self._lock:
                    self._running = False
                    self._pending = False
                    self._idle.set()


def watch(
    ctx: RunContext,
    options: CompileOptions,
    interval: float = 1.0,
    stop: threading.Event | None = None,
    compile_fn: Callable[[RunContext, CompileOptions], object] = run_compile,
) -> int:
    stop = stop or threading.Event()
    manifest = ctx.resolve(options.manifest)
    rules = ctx.resolve(options.rules)

    def report(exc: ScriptError) -> None:
        log_event(ctx, "error", "watch", "compile", kind=exc.kind, code=exc.code, message=exc.message)
        for detail in exc.details:
            log_event(ctx, "error", "watch", "compile", detail=detail)

    runner = CoalescingRunner(lambda: compile_fn(ctx, options), on_error=report)
    log_event(ctx, "info", "watch", "start", manifest=ctx.display_path(manifest), rules=ctx.display_path(rules), interval=interval)
    last = snapshot(watched_files(manifest, rules))
    runner.trigger()
    while not stop.wait(interval):
        current = snapshot(watched_files(manifest, rules))
        if current == last:
            continue
        while not stop.wait(interval):
            settled = snapshot(watched_files(manifest, rules))
            if settled == current:
                break
            current = settled
        last = current
        coalesced = not runner.trigger()
        log_event(ctx, "info", "watch", "change", coalesced=coalesced)
    runner.wait_idle()
    log_event(ctx, "info", "watch", "stop", runs=runner.runs)
    return 0
