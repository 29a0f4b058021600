"""Traceability audit over compiled contract artifacts."""

from .runner import run_audit
from .traceability import (
    AuditState,
    OperationTrace,
    TraceabilityAuditor,
    TraceabilityReport,
    load_contract_artifact,
    render_text,
    traceability_percent,
)

__all__ = [
    "AuditState",
    "OperationTrace",
    "TraceabilityAuditor",
    "TraceabilityReport",
    "load_contract_artifact",
    "render_text",
    "run_audit",
    "traceability_percent",
]
