"""CLI for trying the launcher outside a host."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from enum import Enum


def _to_json(value):
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Find GitHub repositories the way the launcher does",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log cache and request activity to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    query_parser = subparsers.add_parser(
        "query",
        help="Run launcher input and print the results",
    )
    query_parser.add_argument(
        "input",
        help="Launcher input (e.g., /spoon, octocat/hello, linux kernel)",
    )
    query_parser.add_argument(
        "--default-user",
        action="append",
        default=None,
        metavar="USER",
        help="Default user for the /repo form (repeatable, overrides GH_REPO_DEFAULT_USERS)",
    )
    query_parser.add_argument(
        "--token",
        action="append",
        default=None,
        help="Auth token paired with each --default-user (repeatable)",
    )
    query_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    query_parser.add_argument(
        "--actions",
        action="store_true",
        help="Also list the context actions of each result",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    if args.command == "query":
        from .plugin import GitHubRepoPlugin
        from .settings import get_settings

        settings = get_settings()
        overrides = {}
        if args.default_user is not None:
            overrides["default_users"] = args.default_user
        if args.token is not None:
            overrides["auth_tokens"] = args.token
        if overrides:
            settings = settings.model_copy(update=overrides)

        plugin = GitHubRepoPlugin(settings=settings)
        try:
            # The host calls both paths for every keystroke
            results = plugin.query(args.input) + plugin.query(args.input, delayed=True)
            if args.json:
                payload = []
                for result in results:
                    entry = asdict(result)
                    if args.actions:
                        entry["actions"] = [asdict(a) for a in plugin.context_menu(result)]
                    payload.append(entry)
                json.dump(payload, sys.stdout, indent=2, default=_to_json)
                sys.stdout.write("\n")
            else:
                for result in results:
                    print(result.title)
                    if result.subtitle:
                        print(f"    {result.subtitle}")
                    if args.actions:
                        for action in plugin.context_menu(result):
                            print(f"    [{action.shortcut}] {action.title}: {action.url}")
        finally:
            plugin.close()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
