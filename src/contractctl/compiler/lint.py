from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator

from ..manifest.models import HTTP_METHODS
from ..schema.resolver import UnresolvedReference

LintFunc = Callable[[dict[str, Any]], list[str]]


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"


@dataclass(frozen=True)
class LintRule:
    rule_id: str
    severity: Severity
    description: str
    fn: LintFunc


@dataclass(frozen=True)
class LintIssue:
    rule_id: str
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.rule_id}: {self.message}"


@dataclass
class LintReport:
    issues: list[LintIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[LintIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[LintIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.WARN]

    @property
    def ok(self) -> bool:
        return not self.errors


def iter_operations(contract: dict[str, Any]) -> Iterator[tuple[str, str, dict[str, Any]]]:
    paths = contract.get("paths")
    if not isinstance(paths, dict):
        return
    for path, item in paths.items():
        if not isinstance(item, dict):
            continue
        for method, operation in item.items():
            if method in HTTP_METHODS and isinstance(operation, dict):
                yield path, method, operation


def _is_success_code(code: str) -> bool:
    return code[:1] in {"2", "3"}


def check_info_title(contract: dict[str, Any]) -> list[str]:
    info = contract.get("info") or {}
    return [] if info.get("title") else ["missing info.title"]


def check_info_version(contract: dict[str, Any]) -> list[str]:
    info = contract.get("info") or {}
    return [] if info.get("version") else ["missing info.version"]


def check_paths_present(contract: dict[str, Any]) -> list[str]:
    return [] if contract.get("paths") else ["no paths defined"]


def check_operation_text(contract: dict[str, Any]) -> list[str]:
    return [
        f"{method.upper()} {path}: missing summary and description"
        for path, method, op in iter_operations(contract)
        if not op.get("summary") and not op.get("description")
    ]


def check_operation_responses(contract: dict[str, Any]) -> list[str]:
    return [
        f"{method.upper()} {path}: missing responses"
        for path, method, op in iter_operations(contract)
        if not op.get("responses")
    ]


def check_success_response(contract: dict[str, Any]) -> list[str]:
    out: list[str] = []
    for path, method, op in iter_operations(contract):
        responses = op.get("responses")
        if not responses:
            continue
        if not any(_is_success_code(str(code)) for code in responses):
            out.append(f"{method.upper()} {path}: missing success response (2xx/3xx)")
    return out


def check_component_schema_types(contract: dict[str, Any]) -> list[str]:
    schemas = (contract.get("components") or {}).get("schemas") or {}
    return [
        f"schema {name}: missing type or $ref"
        for name, schema in schemas.items()
        if isinstance(schema, dict) and "type" not in schema and "$ref" not in schema
    ]


LINT_RULES: tuple[LintRule, ...] = (
    LintRule("info/title", Severity.ERROR, "contract info carries a title", check_info_title),
    LintRule("info/version", Severity.ERROR, "contract info carries a version", check_info_version),
    LintRule("paths/present", Severity.ERROR, "contract declares at least one path", check_paths_present),
    LintRule("operation/text", Severity.WARN, "operations have a summary or description", check_operation_text),
    LintRule("operation/responses", Severity.ERROR, "operations declare responses", check_operation_responses),
    LintRule("operation/success-response", Severity.WARN, "operations declare a 2xx/3xx response", check_success_response),
    LintRule("components/schema-type", Severity.WARN, "component schemas declare a type or $ref", check_component_schema_types),
)

UNRESOLVED_RULE_ID = "refs/unresolved"


def lint_contract(
    contract: dict[str, Any],
    unresolved: list[UnresolvedReference] | None = None,
    rules: tuple[LintRule, ...] = LINT_RULES,
) -> LintReport:
    report = LintReport()
    for rule in rules:
        for message in rule.fn(contract):
            report.issues.append(LintIssue(rule.rule_id, rule.severity, message))
    for ref in unresolved or ():
        report.issues.append(LintIssue(UNRESOLVED_RULE_ID, Severity.WARN, str(ref)))
    return report
