"""The `clawmemory` command: recall, store, list and delete from a shell.

The same parser backs the console script and the plugin's `clawmemory`
user command. Remote failures are not caught here.
"""

import argparse
import logging
import os
import shlex
import sys
from typing import Callable, Dict, List, Optional, Sequence

from dotenv import load_dotenv

from .client import ClawMemoryClient
from .config_loader import ConfigurationError, MemoryConfig, load_config
from .models import MemoryType, type_label


class CommandUsageError(ValueError):
    """Raised instead of exiting when command arguments don't parse."""


class _CommandParser(argparse.ArgumentParser):
    def error(self, message):
        raise CommandUsageError(f"{self.prog}: {message}")


def _add_commands(parser: argparse.ArgumentParser) -> None:
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    recall = subparsers.add_parser("recall", help="Search memories")
    recall.add_argument("query", help="Search query")
    recall.add_argument("--limit", type=int, default=5, help="Max results (default: 5)")

    store = subparsers.add_parser("store", help="Store a memory")
    store.add_argument("content", help="Content to store")
    store.add_argument(
        "--type",
        default=MemoryType.FACT.value,
        choices=MemoryType.values(),
        help="Memory type (default: fact)",
    )

    list_cmd = subparsers.add_parser("list", help="List stored memories")
    list_cmd.add_argument("--limit", type=int, default=10, help="Max results (default: 10)")

    delete = subparsers.add_parser("delete", help="Delete a memory by id")
    delete.add_argument("memory_id", help="Identifier of the memory")


def build_command_parser(prog: str = "clawmemory") -> argparse.ArgumentParser:
    """Parser for the subcommands alone, raising CommandUsageError on bad input."""
    parser = _CommandParser(prog=prog, description="ClawMemory plugin commands")
    _add_commands(parser)
    return parser


def _cmd_recall(client: ClawMemoryClient, args: argparse.Namespace, config: MemoryConfig) -> List[str]:
    memories = client.recall(args.query, args.limit, config.recall_threshold)
    if not memories:
        return ["No memories found."]
    return [f"[{type_label(m.type)}] {m.content} ({m.relevance_percent}%)" for m in memories]


def _cmd_store(client: ClawMemoryClient, args: argparse.Namespace, config: MemoryConfig) -> List[str]:
    memory_id = client.store(args.content, args.type)
    return [f"Stored: {memory_id}"]


def _cmd_list(client: ClawMemoryClient, args: argparse.Namespace, config: MemoryConfig) -> List[str]:
    memories = client.list(args.limit)
    if not memories:
        return ["No memories found."]
    return [f"{m.id} [{type_label(m.type)}] {m.content}" for m in memories]


def _cmd_delete(client: ClawMemoryClient, args: argparse.Namespace, config: MemoryConfig) -> List[str]:
    if client.delete(args.memory_id):
        return [f"Deleted: {args.memory_id}"]
    return [f"Not deleted: {args.memory_id}"]


COMMANDS: Dict[str, Callable[[ClawMemoryClient, argparse.Namespace, MemoryConfig], List[str]]] = {
    "recall": _cmd_recall,
    "store": _cmd_store,
    "list": _cmd_list,
    "delete": _cmd_delete,
}


def run_command(args: argparse.Namespace, client: ClawMemoryClient, config: MemoryConfig) -> List[str]:
    """Run a parsed subcommand and return its output lines."""
    return COMMANDS[args.command](client, args, config)


def run_command_line(line: str, client: ClawMemoryClient, config: MemoryConfig) -> List[str]:
    """Parse a raw argument string (e.g. 'recall "dark mode" --limit 3') and run it.

    Raises:
        CommandUsageError: If the arguments don't parse.
        RemoteError: If the service call fails.
    """
    try:
        argv = shlex.split(line)
    except ValueError as e:
        raise CommandUsageError(f"clawmemory: {e}")
    args = build_command_parser().parse_args(argv)
    return run_command(args, client, config)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="clawmemory", description="ClawMemory plugin commands")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log HTTP requests"
    )
    _add_commands(parser)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if os.path.exists(args.env_file):
        load_dotenv(args.env_file)

    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Set CLAWMEMORY_API_KEY (get one at clawmemory.dev/dashboard).", file=sys.stderr)
        return 1

    client = ClawMemoryClient(
        config.api_key,
        agent_id=config.agent_id,
        base_url=config.base_url,
        timeout=config.timeout,
    )

    for line in run_command(args, client, config):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
