"""
Knowledge Base Sorter
=====================

Command-line entry point. Loads one file, asks the model for a project and
tags chosen from the user's lists, and prints the suggestion as JSON. With
``--review`` the suggestion can be edited before it is confirmed.

Configuration is read from environment variables (see `common.config`).
Projects and tags given on the command line replace the configured
defaults.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Callable, Sequence

import structlog

from categorizer.errors import UnsupportedMediaTypeError
from categorizer.models import CategorizationResult
from categorizer.provider import CategorizationProvider
from common.config import Settings, setup_libraries
from common.logging_config import configure_logging

from .files import format_size, load_uploaded_file
from .session import SorterSession

REVIEW_HELP = (
    "Commands: project <name> | add <tag> | remove <tag> | confirm | reject\n"
    "Lists: add-project <name> | remove-project <name> | "
    "add-tag-option <name> | remove-tag-option <name>"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kb-sorter",
        description="Get an AI suggestion for the project and tags of a file.",
    )
    parser.add_argument("file", help="image or text file to categorize")
    parser.add_argument(
        "-p",
        "--project",
        action="append",
        dest="projects",
        metavar="PROJECT",
        help="allowed project (repeatable; replaces DEFAULT_PROJECTS)",
    )
    parser.add_argument(
        "-t",
        "--tag",
        action="append",
        dest="tags",
        metavar="TAG",
        help="allowed tag (repeatable; replaces DEFAULT_TAGS)",
    )
    parser.add_argument(
        "--media-type",
        help="override the media type guessed from the file name",
    )
    parser.add_argument(
        "--review",
        action="store_true",
        help="edit and confirm the suggestion interactively",
    )
    return parser


def _print_result(result: CategorizationResult, write: Callable[[str], None]) -> None:
    write(json.dumps(result.to_dict(), ensure_ascii=False))


def _show_suggestion(session: SorterSession, write: Callable[[str], None]) -> None:
    edited = session.edited
    write(f"Project: {edited.project}")
    write(f"Tags: {', '.join(edited.tags) if edited.tags else '(none)'}")
    unselected = session.unselected_tags()
    if not session.tags:
        write(session.tags.empty_message())
    elif unselected:
        write(f"Available tags: {', '.join(unselected)}")
    if not session.projects:
        write(session.projects.empty_message())
    else:
        write(f"Available projects: {', '.join(session.projects)}")


def run_review(
    session: SorterSession,
    read_line: Callable[[str], str] | None = None,
    write: Callable[[str], None] = print,
) -> CategorizationResult | None:
    """
    Let the user edit the current suggestion until they confirm or reject it.

    Returns the confirmed categorization, or None if it was rejected or input
    ended.
    """
    read_line = read_line or input
    write(REVIEW_HELP)
    while True:
        _show_suggestion(session, write)
        try:
            line = read_line("> ").strip()
        except EOFError:
            session.reject()
            return None

        command, _, argument = line.partition(" ")
        argument = argument.strip()
        if command == "confirm":
            return session.confirm()
        if command == "reject":
            session.reject()
            return None
        try:
            if command == "project":
                session.set_project(argument)
            elif command == "add":
                session.add_tag(argument)
            elif command == "remove":
                session.remove_tag(argument)
            elif command == "add-project":
                session.add_project(argument)
            elif command == "remove-project":
                session.remove_project(argument)
            elif command == "add-tag-option":
                session.add_tag_option(argument)
            elif command == "remove-tag-option":
                session.remove_tag_option(argument)
            else:
                write(REVIEW_HELP)
        except ValueError as e:
            write(str(e))


def main(argv: Sequence[str] | None = None) -> int:
    """Categorize one file and return the process exit code."""
    args = build_parser().parse_args(argv)
    log = structlog.get_logger(__name__)

    try:
        settings = Settings()
        configure_logging(settings)
        setup_libraries(settings)
    except ValueError as e:
        log.error("Configuration error", error=e)
        return 1

    missing = settings.missing_credentials()
    if missing:
        log.error(
            "API key is not set; categorization requests will fail",
            expected_variables=missing,
        )

    projects = args.projects if args.projects is not None else settings.DEFAULT_PROJECTS
    tags = args.tags if args.tags is not None else settings.DEFAULT_TAGS

    try:
        uploaded = load_uploaded_file(
            args.file,
            media_type=args.media_type,
            preview_max_side=settings.PREVIEW_MAX_SIDE,
        )
    except UnsupportedMediaTypeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        log.error("Could not read file", path=args.file, error=str(e))
        print(f"Error: could not read {args.file}", file=sys.stderr)
        return 1

    log.info(
        "Starting categorization",
        file_name=uploaded.name,
        size=format_size(uploaded.size_bytes),
        projects=projects,
        tags=tags,
        model=settings.AI_MODEL,
    )

    session = SorterSession(CategorizationProvider(settings), projects, tags)
    try:
        result = session.process_file(uploaded)
        if result is None:
            print(f"Error: {session.error}", file=sys.stderr)
            return 1

        if args.review:
            result = run_review(session)
            if result is None:
                print("Suggestion rejected.", file=sys.stderr)
                return 0

        _print_result(result, print)
        return 0
    finally:
        session.clear_file()


if __name__ == "__main__":
    sys.exit(main())
