#!/usr/bin/env python3
"""AppForge - prompt-to-web-app generator.

Usage:
    python main.py generate --prompt "todo app with dark mode"
    python main.py generate --prompt "..." --feature auth --feature darkmode --out ./build
    python main.py generate --prompt "..." --show-diagram --verbose
    python main.py classify --prompt "REST API for a bookstore with postgres"
    python main.py scaffold --prompt "fullstack blog with mongodb"
"""

import argparse
import json
import logging
import os
import sys

from config.stacks import FEATURES
from core.errors import CodeParseError
from core.materializer import materialize
from core.orchestrator import Orchestrator
from core.persistence import write_project
from agents.scaffolder import Scaffolder
from utils.folder_naming import get_output_dir


def _configure_logging(verbose):
    level = logging.DEBUG if verbose else os.environ.get("APPFORGE_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def cmd_generate(args):
    """Run one generation and print (or write) the result."""
    orchestrator = Orchestrator(follow_up_diagram=not args.no_follow_up)
    result = orchestrator.generate(args.prompt, features=args.feature or ())

    if not result.ok:
        print(f"Generation failed: {result.failure}", file=sys.stderr)
        return 1

    config = result.config
    print(f"Project:  {config.name} ({config.kind}, {config.language})")
    print(f"\n{result.explanation or '(no explanation)'}")

    if not result.raw_code:
        print("\nNo code was returned.")
        return 1

    try:
        project = materialize(result.raw_code, config)
    except CodeParseError as e:
        print(f"\nCould not parse generated code: {e}", file=sys.stderr)
        return 1

    print(f"\nFiles ({len(project.files)}), main file {project.main_path}:")
    for path in project.files:
        print(f"  {path}")

    if args.show_diagram and result.diagram_source:
        print(f"\nDiagram:\n{result.diagram_source}")

    if args.out:
        output_dir = get_output_dir(args.out, config.kind, config.name)
        written = write_project(project.files, output_dir)
        print(f"\nWrote {len(written)} file(s) to {output_dir}")
    return 0


def cmd_classify(args):
    config = Orchestrator().classify(args.prompt)
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def cmd_scaffold(args):
    """Classify the request and print the commands that bootstrap it."""
    config = Orchestrator().classify(args.prompt)
    scaffolder = Scaffolder(root=args.root)
    session = scaffolder.create_session(config)
    print(f"# {config.name} ({config.kind}) in {session.terminal_path}")
    for command in scaffolder.init_commands(session):
        print(command)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="appforge",
        description="Generate web applications from natural-language prompts",
    )
    subparsers = parser.add_subparsers(dest="command")

    gen_parser = subparsers.add_parser("generate", help="Generate an application")
    gen_parser.add_argument("--prompt", required=True, help="Natural language request")
    gen_parser.add_argument("--feature", action="append", choices=FEATURES,
                            help="Feature to request (repeatable)")
    gen_parser.add_argument("--out", help="Write the project under this directory")
    gen_parser.add_argument("--show-diagram", action="store_true",
                            help="Print the architecture diagram source")
    gen_parser.add_argument("--no-follow-up", action="store_true",
                            help="Skip the extra model call when no diagram was returned")
    gen_parser.add_argument("--verbose", action="store_true", help="Debug logging")

    cls_parser = subparsers.add_parser("classify", help="Classify a request into a project config")
    cls_parser.add_argument("--prompt", required=True)

    scaf_parser = subparsers.add_parser("scaffold", help="Print bootstrap commands for a request")
    scaf_parser.add_argument("--prompt", required=True)
    scaf_parser.add_argument("--root", help="Directory that holds project sessions")

    args = parser.parse_args(argv)
    _configure_logging(getattr(args, "verbose", False))

    if args.command == "generate":
        return cmd_generate(args)
    if args.command == "classify":
        return cmd_classify(args)
    if args.command == "scaffold":
        return cmd_scaffold(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
