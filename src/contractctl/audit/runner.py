from __future__ import annotations

from pathlib import Path

from ..contracts.validate import validate
from ..core.context import RunContext
from ..core.fs import atomic_write_text
from ..core.logging import log_event
from ..core.serialize import dumps_json
from .traceability import REPORT_SCHEMA, TraceabilityAuditor, TraceabilityReport, load_contract_artifact


def run_audit(
    ctx: RunContext,
    spec: str | Path,
    threshold: float,
    strict: bool = False,
    root: str | Path | None = None,
    out_file: str | Path | None = None,
) -> TraceabilityReport:
    spec_path = ctx.resolve(spec)
    contract = load_contract_artifact(spec_path)
    source_root = ctx.resolve(root) if root is not None else ctx.repo_root
    auditor = TraceabilityAuditor(
        contract,
        spec=ctx.display_path(spec_path),
        threshold=threshold,
        strict=strict,
        root=source_root,
    )
    report = auditor.run()
    for orphan in report.orphans:
        log_event(ctx, "warn", "audit", "orphan", operation=orphan)
    for source in report.missing_sources:
        log_event(ctx, "warn", "audit", "missing_source", source=source)
    log_event(
        ctx,
        "info",
        "audit",
        "result",
        state=report.state.value,
        percent=f"{report.percent:.1f}",
        history=",".join(state.value for state in auditor.history),
    )
    if out_file is not None:
        payload = report.as_payload()
        validate(REPORT_SCHEMA, payload)
        written = atomic_write_text(ctx.resolve(out_file), dumps_json(payload, pretty=True) + "\n")
        log_event(ctx, "info", "audit", "write", output=ctx.display_path(written))
    return report
