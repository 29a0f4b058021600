from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from ..compiler.lint import iter_operations
from ..core.serialize import load_structured_file
from ..errors import ScriptError
from ..exit_codes import AUDIT_PASS, AUDIT_STRICT_FAIL, AUDIT_THRESHOLD_FAIL, ERR_CONFIG

REPORT_SCHEMA = "contractctl.audit-report.v1"
DEFAULT_THRESHOLD = 95.0


class AuditState(str, Enum):
    LOADED = "LOADED"
    ANALYZED = "ANALYZED"
    SOURCES_VALIDATED = "SOURCES_VALIDATED"
    REPORTED = "REPORTED"
    PASS = "PASS"
    THRESHOLD_FAIL = "THRESHOLD_FAIL"
    STRICT_FAIL = "STRICT_FAIL"


TERMINAL_EXIT_CODES = {
    AuditState.PASS: AUDIT_PASS,
    AuditState.THRESHOLD_FAIL: AUDIT_THRESHOLD_FAIL,
    AuditState.STRICT_FAIL: AUDIT_STRICT_FAIL,
}


@dataclass(frozen=True)
class OperationTrace:
    operation: str
    sources: tuple[str, ...]

    @property
    def traced(self) -> bool:
        return bool(self.sources)


@dataclass
class TraceabilityReport:
    spec: str
    threshold: float
    strict: bool
    operations: list[OperationTrace] = field(default_factory=list)
    missing_sources: list[str] = field(default_factory=list)
    state: AuditState = AuditState.REPORTED

    @property
    def total(self) -> int:
        return len(self.operations)

    @property
    def traced(self) -> int:
        return sum(1 for op in self.operations if op.traced)

    @property
    def orphans(self) -> list[str]:
        return [op.operation for op in self.operations if not op.traced]

    @property
    def percent(self) -> float:
        return traceability_percent(self.traced, self.total)

    @property
    def exit_code(self) -> int:
        return TERMINAL_EXIT_CODES.get(self.state, AUDIT_PASS)

    @property
    def status(self) -> str:
        return "pass" if self.state is AuditState.PASS else "fail"

    def as_payload(self) -> dict[str, Any]:
        return {
            "schema_name": REPORT_SCHEMA,
            "schema_version": 1,
            "tool": "contractctl",
            "status": self.status,
            "spec": self.spec,
            "total_operations": self.total,
            "traced_operations": self.traced,
            "orphan_operations": self.orphans,
            "traceability_percent": self.percent,
            "threshold": self.threshold,
            "strict": self.strict,
            "missing_sources": list(self.missing_sources),
            "state": self.state.value,
            "exit_code": self.exit_code,
            "operations": [
                {"operation": op.operation, "sources": list(op.sources), "traced": op.traced}
                for op in self.operations
            ],
        }


def traceability_percent(traced: int, total: int) -> float:
    return 100.0 * traced / total if total else 0.0


def load_contract_artifact(path: Path) -> dict[str, Any]:
    try:
        data = load_structured_file(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ScriptError(f"cannot read contract artifact {path}: {exc}", ERR_CONFIG, kind="artifact_unreadable") from exc
    if not isinstance(data, dict):
        raise ScriptError(f"contract artifact {path} is not a mapping", ERR_CONFIG, kind="artifact_unreadable")
    return data


class TraceabilityAuditor:
    """Classifies every operation of a compiled contract as traced or orphan.

    The auditor walks LOADED -> ANALYZED -> [SOURCES_VALIDATED] -> REPORTED and
    finishes in one of PASS, THRESHOLD_FAIL or STRICT_FAIL. A missed threshold
    outranks missing source files.
    """

    def __init__(
        self,
        contract: dict[str, Any],
        spec: str,
        threshold: float = DEFAULT_THRESHOLD,
        strict: bool = False,
        root: Path | None = None,
    ) -> None:
        self.contract = contract
        self.report = TraceabilityReport(spec=spec, threshold=float(threshold), strict=strict)
        self.root = root or Path.cwd()
        self.state = AuditState.LOADED
        self.history: list[AuditState] = [AuditState.LOADED]

    def _advance(self, state: AuditState) -> None:
        self.state = state
        self.history.append(state)

    def analyze(self) -> list[OperationTrace]:
        traces: list[OperationTrace] = []
        for path, method, op in iter_operations(self.contract):
            raw = op.get("x-source")
            sources = tuple(str(src) for src in raw) if isinstance(raw, list) else ()
            traces.append(OperationTrace(operation=f"{method.upper()} {path}", sources=sources))
        self.report.operations = traces
        self._advance(AuditState.ANALYZED)
        return traces

    def validate_sources(self) -> list[str]:
        missing: list[str] = []
        seen: set[str] = set()
        for trace in self.report.operations:
            for source in trace.sources:
                if source in seen:
                    continue
                seen.add(source)
                candidate = Path(source)
                if not candidate.is_absolute():
                    candidate = self.root / candidate
                try:
                    candidate.read_bytes()
                except OSError:
                    missing.append(source)
        self.report.missing_sources = missing
        self._advance(AuditState.SOURCES_VALIDATED)
        return missing

    def run(self) -> TraceabilityReport:
        self.analyze()
        if self.report.strict:
            self.validate_sources()
        self._advance(AuditState.REPORTED)
        if self.report.percent < self.report.threshold:
            final = AuditState.THRESHOLD_FAIL
        elif self.report.strict and self.report.missing_sources:
            final = AuditState.STRICT_FAIL
        else:
            final = AuditState.PASS
        self.report.state = final
        self._advance(final)
        return self.report


def render_text(report: TraceabilityReport) -> str:
    lines = [f"traceability audit: {report.spec}"]
    for op in report.operations:
        if not op.traced:
            lines.append(f"  ORPHAN {op.operation}")
            continue
        shown = ", ".join(op.sources[:3])
        more = f" +{len(op.sources) - 3} more" if len(op.sources) > 3 else ""
        lines.append(f"  ok     {op.operation} -> {shown}{more}")
    lines += [
        f"total={report.total} traced={report.traced} orphans={len(report.orphans)}",
        f"traceability={report.percent:.1f}% threshold={report.threshold:.1f}%",
    ]
    if report.strict:
        for source in report.missing_sources:
            lines.append(f"  MISSING {source}")
    lines.append(f"result={report.state.value} exit={report.exit_code}")
    return "\n".join(lines)
