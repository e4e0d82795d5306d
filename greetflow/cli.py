from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from greetflow.agent import create_greeting_graph, main as run_demo
from greetflow.flow import FlowError, JsonlTraceSink
from greetflow.flow.runtime import CompiledFlow
from greetflow.tracing import TracingConfigError, build_exporter, load_tracing_config
from greetflow.tracing.exporter import LangSmithExporter
from greetflow.verify import register_verify_command

logger = logging.getLogger("greetflow")


def _build_app(args: argparse.Namespace) -> tuple[CompiledFlow, Optional[LangSmithExporter]]:
    env_file = args.env_file if args.env_file and Path(args.env_file).is_file() else None
    config = load_tracing_config(args.config, env_file=env_file)
    exporter = build_exporter(config)
    trace_sink = JsonlTraceSink(args.trace_file) if getattr(args, "trace_file", None) else None
    return create_greeting_graph(exporter=exporter, trace_sink=trace_sink), exporter


def _cmd_demo(args: argparse.Namespace) -> int:
    app, exporter = _build_app(args)
    try:
        return run_demo(app)
    finally:
        if exporter is not None:
            exporter.close()


def _cmd_run(args: argparse.Namespace) -> int:
    app, exporter = _build_app(args)
    try:
        result = app.invoke({"name": args.name})
    finally:
        if exporter is not None:
            exporter.close()
    if args.json_output:
        print(json.dumps(result, ensure_ascii=False))
    else:
        print(result["greeting"])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="greetflow", description="Greeting agent")
    parser.add_argument("--config", help="YAML file with a 'tracing' section")
    parser.add_argument("--env-file", default=".env", help="dotenv file with LANGCHAIN_* settings (default: .env)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="cmd")

    demo = sub.add_parser("demo", help="greet the two sample names")
    demo.set_defaults(func=_cmd_demo)

    run = sub.add_parser("run", help="greet one name")
    run.add_argument("name", help="name to greet (any string, including empty)")
    run.add_argument("--json", dest="json_output", action="store_true", help="print the full final state as JSON")
    run.add_argument("--trace-file", help="append step spans to this JSON Lines file")
    run.set_defaults(func=_cmd_run)

    register_verify_command(sub)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    func = getattr(args, "func", _cmd_demo)
    try:
        return func(args)
    except (FlowError, TracingConfigError) as exc:
        logger.debug("command failed", exc_info=True)
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
