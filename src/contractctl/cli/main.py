from __future__ import annotations

import argparse
import platform
import sys
import threading
from typing import NoReturn

from .. import __version__
from ..core.config import load_tool_config, pick
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import ScriptError
from ..exit_codes import ERR_INTERNAL, ERR_USAGE, OK
from .output import build_base_payload, emit, render_error


def _version_string() -> str:
    return f"contractctl {__version__}"


class ContractctlParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with `ERR_USAGE` instead of 2."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(ERR_USAGE, f"{self.prog}: error: {message}\n")


def _add_compile_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("compile", help="compile the manifest and rule corpus into a contract artifact")
    p.add_argument("--manifest", help="manifest path (default: manifest.yaml)")
    p.add_argument("--rules", help="rule corpus root (default: rules)")
    p.add_argument("--output", help="artifact path (default: openapi.<format>)")
    p.add_argument("--output-format", choices=["yaml", "json"], default=None, help="artifact serialization")
    p.add_argument("--watch", action="store_true", help="recompile when the manifest or corpus changes")
    p.add_argument("--watch-interval", type=float, default=1.0, help="poll interval in seconds")
    p.add_argument("--lint-only", action="store_true", help="lint the compiled contract without writing it")
    p.add_argument("--detect-breaking", action="store_true", help="compare against a prior artifact")
    p.add_argument("--compare-to", help="prior artifact for breaking-change detection")
    p.add_argument("--force", action="store_true", help="write despite lint errors or breaking changes")
    p.add_argument("--generate-client", action="store_true", help="write a client SDK next to the artifact")
    p.add_argument("--client-lang", choices=["typescript", "javascript"], default="typescript")
    p.add_argument("--generate-docs", action="store_true", help="write API documentation")
    p.add_argument("--docs-format", choices=["html", "markdown"], default="html")
    p.add_argument("--jobs", type=int, default=1, help="worker threads for rule extraction")


def _add_audit_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("audit", help="audit operation traceability of a compiled contract")
    p.add_argument("--spec", help="contract artifact (default: openapi.yaml)")
    p.add_argument("--min", type=float, default=None, help="minimum traceability percent (default: 95)")
    p.add_argument("--strict", action="store_true", help="fail when a referenced rule document is missing")
    p.add_argument("--root", help="directory that relative source paths resolve against")
    p.add_argument("--out-file", help="write the audit report JSON to this path")


def build_parser() -> argparse.ArgumentParser:
    p = ContractctlParser(prog="contractctl")
    p.add_argument("--version", action="version", version=_version_string())
    p.add_argument("--json", action="store_true", help="emit JSON output and JSON log lines")
    p.add_argument("--run-id", help="run identifier for log events")
    p.add_argument("--cwd", help="project root (default: current directory)")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable debug events")
    vg.add_argument("--quiet", action="store_true", help="only emit warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("version", help="print version information")
    _add_compile_parser(sub)
    _add_audit_parser(sub)
    return p


def _compile_options(ctx: RunContext, ns: argparse.Namespace):
    from ..compiler.pipeline import CompileOptions

    config = load_tool_config(ctx.repo_root)
    output_format = pick(ns.output_format, config, "output-format")
    output = pick(ns.output, config, "output")
    if ns.jobs < 1:
        raise ScriptError("--jobs must be at least 1", ERR_USAGE, kind="usage_error")
    return CompileOptions(
        manifest=ctx.resolve(pick(ns.manifest, config, "manifest")),
        rules=ctx.resolve(pick(ns.rules, config, "rules")),
        output=ctx.resolve(output) if output else None,
        output_format=output_format,
        lint_only=ns.lint_only,
        detect_breaking=ns.detect_breaking,
        compare_to=ctx.resolve(ns.compare_to) if ns.compare_to else None,
        force=ns.force,
        generate_client=ns.generate_client,
        client_lang=ns.client_lang,
        generate_docs=ns.generate_docs,
        docs_format=ns.docs_format,
        jobs=ns.jobs,
    )


def run_compile_command(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    from ..compiler.pipeline import run_compile
    from ..compiler.watch import watch

    options = _compile_options(ctx, ns)
    if ns.watch:
        stop = threading.Event()
        try:
            return watch(ctx, options, interval=ns.watch_interval, stop=stop)
        except KeyboardInterrupt:
            stop.set()
            log_event(ctx, "info", "watch", "interrupted")
            return OK
    result = run_compile(ctx, options)
    summary = result.summary(ctx)
    if as_json:
        emit({**build_base_payload(ctx), "command": "compile", **summary}, as_json)
    elif not ctx.quiet:
        target = summary["output"] or "(lint only)"
        print(
            f"compiled {target}: paths={summary['paths']} operations={summary['operations']} "
            f"orphans={summary['orphans']} lint_warnings={summary['lint_warnings']} etag={summary['etag']}"
        )
    return OK


def run_audit_command(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    from ..audit import render_text, run_audit

    config = load_tool_config(ctx.repo_root)
    report = run_audit(
        ctx,
        spec=pick(ns.spec, config, "spec"),
        threshold=float(pick(ns.min, config, "min")),
        strict=ns.strict,
        root=ns.root,
        out_file=ns.out_file,
    )
    if as_json:
        emit({**build_base_payload(ctx, status=report.status), "command": "audit", "report": report.as_payload()}, as_json)
    else:
        print(render_text(report))
    return report.exit_code


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    output_format = "json" if ns.json else "text"
    try:
        ctx = RunContext.from_args(ns.run_id, ns.cwd, output_format, ns.verbose, ns.quiet)
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        as_json = ctx.output_format == "json"
        if ns.cmd == "version":
            emit(
                {
                    **build_base_payload(ctx),
                    "contractctl_version": __version__,
                    "python_version": platform.python_version(),
                },
                as_json,
            )
            return OK
        if ns.cmd == "compile":
            return run_compile_command(ctx, ns, as_json)
        if ns.cmd == "audit":
            return run_audit_command(ctx, ns, as_json)
        return ERR_USAGE
    except ScriptError as exc:
        print(
            render_error(
                as_json=output_format == "json",
                message=str(exc),
                code=exc.code,
                kind=exc.kind,
                details=exc.details,
            ),
            file=sys.stderr,
        )
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=output_format == "json", message=f"internal error: {exc}", code=ERR_INTERNAL),
            file=sys.stderr,
        )
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
