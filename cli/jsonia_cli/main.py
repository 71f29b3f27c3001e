"""Main entry point for the Jsonia CLI."""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

from jsonia.config import settings
from jsonia.runtime import ComponentResolver, Document, JsoniaError, Runtime
from jsonia.runtime.dom import describe_node
from jsonia_cli import __version__


def print_help():
    """Print help message."""
    print(f"""
Jsonia CLI v{__version__}

Usage:
  jsonia [options] <command> <file>

Commands:
  render <component.json>    Render a component definition and print its HTML
  run <definition.json>      Run a page definition and print state and body HTML

Options:
  --project DIR     Project root (components/ is searched for extends)
  --shared DIR      Shared components directory (repeatable)
  --html FILE       Page to run the definition against (run only)
  --no-editor       Render without editor drop zones
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  JSONIA_PROJECT_DIR              Project root (same as --project)
  JSONIA_SHARED_COMPONENTS_DIR    Shared components roots, path-separated
  JSONIA_API_BASE_URL             Base url for relative API urls
  JSONIA_LOG_LEVEL                Logging level (default: INFO)

Examples:
  jsonia render components/card.json --project .
  jsonia run page.json --html page.html
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (render, run)
        file: str | None
        project: str | None
        shared: list[str]
        html: str | None
        editor: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "file": None,
        "project": None,
        "shared": [],
        "html": None,
        "editor": True,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in ("render", "run") and result["command"] is None:
            result["command"] = arg
        elif arg in ("--project", "--shared", "--html"):
            if i + 1 >= len(args):
                print(f"Error: {arg} requires a value")
                sys.exit(1)
            value = args[i + 1]
            if arg == "--shared":
                result["shared"].append(value)
            else:
                result[arg[2:]] = value
            i += 1
        elif arg == "--no-editor":
            result["editor"] = False
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'jsonia --help' for usage.")
            sys.exit(1)
        elif result["command"] is not None and result["file"] is None:
            result["file"] = arg
        else:
            print(f"Unknown command: {arg}")
            print("Run 'jsonia --help' for usage.")
            sys.exit(1)

        i += 1

    return result


def load_json(path: str) -> object:
    """Read and parse a JSON file, exiting with a message on failure."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        print(f"Error: cannot read {path}: {e}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: {path} is not valid JSON: {e}")
        sys.exit(1)


def make_resolver(args: dict) -> ComponentResolver:
    project = args["project"] or settings.project_dir
    shared = args["shared"] or settings.shared_dirs
    return ComponentResolver(project, shared)


def render_command(args: dict) -> int:
    definition = load_json(args["file"])
    if not isinstance(definition, dict):
        print("Error: a component definition must be a JSON object")
        return 1

    runtime = Runtime(resolver=make_resolver(args))
    runtime.renderer.editor_mode = args["editor"]
    element = runtime.render_component(definition)
    print(element.prettify())

    for warning in runtime.renderer.warnings:
        print(f"warning: [{warning.code}] {warning.message}", file=sys.stderr)
    return 0


async def run_command(args: dict) -> int:
    definition = load_json(args["file"])
    html = None
    if args["html"]:
        try:
            html = Path(args["html"]).read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error: cannot read {args['html']}: {e}")
            return 1

    runtime = Runtime(Document(html), resolver=make_resolver(args))
    runtime.renderer.editor_mode = args["editor"]
    try:
        await runtime.init(definition)
    except JsoniaError as e:
        print(f"Error: {e}")
        return 1

    print(json.dumps(runtime.get_state(), indent=2, ensure_ascii=False, default=describe_node))
    print(runtime.document.body.decode_contents())
    for alert in runtime.host.alerts:
        print(f"alert: {alert}", file=sys.stderr)
    if runtime.host.location:
        print(f"navigate: {runtime.host.location}", file=sys.stderr)
    return 0


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    # Handle help and version first
    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"jsonia {__version__}")
        return

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args["command"] is None or args["file"] is None:
        print_help()
        sys.exit(1)

    if args["command"] == "render":
        sys.exit(render_command(args))

    sys.exit(asyncio.run(run_command(args)))


if __name__ == "__main__":
    main()
