"""
CLI App - Main entry point for the ticketsync command line tool.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from ticketsync.adapters.config import EnvironmentConfigProvider
from ticketsync.adapters.storage import JsonTaskStore
from ticketsync.application.sync import TicketingSyncService
from ticketsync.application.tasks import (
    add_subtask,
    clear_subtasks,
    remove_subtask,
    remove_task,
    set_task_status,
    update_task,
)
from ticketsync.core.domain.entities import Subtask, Task, TaskTree
from ticketsync.core.domain.enums import TaskStatus
from ticketsync.core.domain.reference_ids import ReferenceIdGenerator
from ticketsync.core.ports.config_provider import AppConfig
from ticketsync.core.ports.ticketing import TicketingProviderPort
from ticketsync.core.services import create_ticketing_provider

from .exit_codes import ExitCode
from .logging import RedactingFilter, setup_logging
from .output import Console, Symbols


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for ticketsync.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="ticketsync",
        description="Keep tasks.json in sync with Jira, GitHub Issues or Azure DevOps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create or re-link tickets for every task and subtask
  ticketsync sync-tickets

  # Preview without touching the tasks file or the ticketing system
  ticketsync --dry-run sync-tickets

  # Mark tasks done (subtasks follow) and move their tickets
  ticketsync set-status --id 3,4.1 --status done

  # Add a subtask, or turn task 7 into a subtask of task 3
  ticketsync add-subtask --parent 3 --title "Write migration"
  ticketsync add-subtask --parent 3 --task-id 7

  # Detach a subtask into a standalone task with its own ticket
  ticketsync remove-subtask --id 3.2 --convert

  # Show the reference id of a task, or read one from a ticket title
  ticketsync ref-id --id 3.2
  ticketsync ref-id --title "US003-Set up CI"
        """,
    )

    # Global options
    parser.add_argument(
        "--file",
        "-f",
        dest="tasks_file",
        type=str,
        help="Path to tasks.json (default: <project-root>/tasks/tasks.json)",
    )
    parser.add_argument(
        "--project-root",
        type=str,
        help="Project directory holding the config file and .env (default: cwd)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing the tasks file or tickets",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only print errors and a one-line summary",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log format (default: text)",
    )
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser(
        "sync-tickets",
        help="Create or link tickets for every task and subtask",
    )

    status_parser = subparsers.add_parser("set-status", help="Set task or subtask status")
    status_parser.add_argument(
        "--id", "-i", required=True, help='Task id(s): "3", "3.1" or "3,4.1"'
    )
    status_parser.add_argument(
        "--status",
        "-s",
        required=True,
        help=f"New status ({', '.join(TaskStatus.values())})",
    )

    remove_parser = subparsers.add_parser("remove-task", help="Remove tasks or subtasks")
    remove_parser.add_argument(
        "--id", "-i", required=True, help='Task id(s): "3", "3.1" or "3,4.1"'
    )
    remove_parser.add_argument(
        "--yes", "-y", action="store_true", help="Skip the confirmation prompt"
    )

    add_parser = subparsers.add_parser("add-subtask", help="Add a subtask to a task")
    add_parser.add_argument("--parent", "-p", required=True, help="Parent task id")
    add_parser.add_argument(
        "--task-id", help="Existing task to convert into a subtask of --parent"
    )
    add_parser.add_argument("--title", "-t", help="Title of a new subtask")
    add_parser.add_argument("--description", "-d", help="Description of a new subtask")
    add_parser.add_argument("--details", help="Implementation details of a new subtask")
    add_parser.add_argument("--status", "-s", help="Status of a new subtask (default: pending)")
    add_parser.add_argument(
        "--dependencies", help="Comma-separated ids the new subtask depends on"
    )

    remove_sub_parser = subparsers.add_parser("remove-subtask", help="Remove a subtask")
    remove_sub_parser.add_argument("--id", "-i", required=True, help='Subtask id, e.g. "3.2"')
    remove_sub_parser.add_argument(
        "--convert",
        "-c",
        action="store_true",
        help="Turn the subtask into a standalone task instead of deleting it",
    )

    clear_parser = subparsers.add_parser(
        "clear-subtasks", help="Remove all subtasks of tasks and cancel their tickets"
    )
    clear_parser.add_argument("--id", "-i", required=True, help='Task id(s): "3" or "3,4"')

    update_parser = subparsers.add_parser(
        "update-task", help="Edit a task or subtask and update its ticket"
    )
    update_parser.add_argument("--id", "-i", required=True, help='Task or subtask id, e.g. "3.2"')
    update_parser.add_argument("--title", "-t", help="New title")
    update_parser.add_argument("--description", "-d", help="New description")
    update_parser.add_argument("--details", help="New implementation details")
    update_parser.add_argument("--test-strategy", help="New test strategy (tasks only)")
    update_parser.add_argument("--priority", "-p", help="New priority (high, medium, low)")

    ref_parser = subparsers.add_parser("ref-id", help="Show or extract reference ids")
    ref_group = ref_parser.add_mutually_exclusive_group(required=True)
    ref_group.add_argument("--id", "-i", help='Task or subtask id, e.g. "3" or "3.2"')
    ref_group.add_argument("--title", "-t", help="Ticket title to read a reference id from")
    ref_group.add_argument("--ref", "-r", help="Reference id to find the local task for")

    return parser


# -------------------------------------------------------------------------
# Wiring
# -------------------------------------------------------------------------


@dataclass
class CommandContext:
    """Everything a command needs, built once per invocation."""

    config: AppConfig
    store: JsonTaskStore
    provider: TicketingProviderPort | None
    service: TicketingSyncService
    config_errors: list[str]

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    def close(self) -> None:
        if self.provider is not None:
            self.provider.close()


def build_context(args: argparse.Namespace, redacting_filter: RedactingFilter) -> CommandContext:
    """
    Load configuration and wire the store, provider and sync service.

    Args:
        args: Parsed command-line arguments.
        redacting_filter: Log filter that receives the configured credentials.
    """
    project_root = Path(args.project_root) if args.project_root else None
    config_provider = EnvironmentConfigProvider(
        project_root=project_root,
        cli_overrides={
            "tasks_file": str(Path(args.tasks_file).resolve()) if args.tasks_file else None,
            "dry_run": True if args.dry_run else None,
            "verbose": True if args.verbose else None,
        },
    )
    config = config_provider.load()
    redacting_filter.register_secrets(*config.ticketing.secrets())

    store = JsonTaskStore(config.resolved_tasks_path(), dry_run=config.dry_run)
    provider = create_ticketing_provider(config.ticketing, dry_run=config.dry_run)
    service = TicketingSyncService(
        config.ticketing,
        provider,
        store,
        dry_run=config.dry_run,
    )
    return CommandContext(
        config=config,
        store=store,
        provider=provider,
        service=service,
        config_errors=config.validate(),
    )


def _warn_ticketing_config(console: Console, ctx: CommandContext) -> None:
    # Lifecycle commands still succeed locally when ticketing is misconfigured
    if ctx.config_errors:
        console.warning("Ticketing is enabled but not fully configured; tickets will not be updated")
        for error in ctx.config_errors:
            console.detail(error)


# -------------------------------------------------------------------------
# Commands
# -------------------------------------------------------------------------


def run_sync_tickets(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    """
    Reconcile every task and subtask with the ticketing system.

    Returns:
        SUCCESS, PARTIAL_SUCCESS when some items failed, or the code of the
        configuration or connection problem that prevented the run.
    """
    console.header("ticketsync - Sync Tickets")
    if ctx.dry_run:
        console.dry_run_banner()

    ticketing = ctx.config.ticketing
    if not ticketing.enabled:
        console.error("Ticketing integration is disabled (set ticketingIntegrationEnabled)")
        return ExitCode.CONFIG_ERROR
    if ctx.config_errors:
        console.config_errors(ctx.config_errors)
        return ExitCode.CONFIG_ERROR
    if ctx.provider is None:
        console.error("No ticketing provider could be created")
        return ExitCode.CONFIG_ERROR

    console.info(f"Tasks file: {ctx.store.path}")
    console.section(f"Connecting to {ctx.provider.name}")
    if not ctx.provider.test_connection():
        console.error(f"Could not connect to {ctx.provider.name}; check the URL and credentials")
        return ExitCode.CONNECTION_ERROR
    console.success("Connected")

    console.section("Syncing tasks")
    summary = ctx.service.sync_all_tasks(progress=console.progress)
    console.sync_summary(summary, dry_run=ctx.dry_run)

    if summary.success:
        return ExitCode.SUCCESS
    if summary.partial_success:
        return ExitCode.PARTIAL_SUCCESS
    return ExitCode.ERROR


def run_set_status(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    _warn_ticketing_config(console, ctx)
    result = set_task_status(ctx.store, args.id, args.status, sync_service=ctx.service)

    if console.json_mode:
        console.emit_json(
            {
                "success": result.success,
                "status": result.status.value,
                "updatedTasks": result.updated_ids,
                "cascadedSubtasks": result.cascaded_ids,
                "ticketing": [outcome.to_dict() for outcome in result.ticketing],
            }
        )
        return ExitCode.SUCCESS

    for task_id in result.updated_ids:
        console.success(f"Task {task_id} {Symbols.ARROW} {result.status.value}")
    for task_id in result.cascaded_ids:
        console.detail(f"Subtask {task_id} {Symbols.ARROW} {result.status.value}")
    for task_id, outcome in zip(result.updated_ids + result.cascaded_ids, result.ticketing):
        console.ticketing_outcome(f"Ticket for {task_id}", outcome)
    return ExitCode.SUCCESS


def run_remove_task(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    _warn_ticketing_config(console, ctx)

    if not args.yes and not console.quiet and not ctx.dry_run:
        if not console.confirm(f"Remove {args.id} and delete the linked tickets?"):
            console.warning("Cancelled by user")
            return ExitCode.CANCELLED

    result = remove_task(ctx.store, args.id, sync_service=ctx.service)

    if console.json_mode:
        console.emit_json(result.to_dict())
        return ExitCode.SUCCESS if result.success else ExitCode.ERROR

    for message in result.messages:
        console.success(message)
    for outcome in result.ticketing:
        console.ticketing_outcome("Ticket", outcome)
    for error in result.errors:
        console.error(error)
    return ExitCode.SUCCESS if result.success else ExitCode.ERROR


def run_add_subtask(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    _warn_ticketing_config(console, ctx)

    data = None
    if args.task_id is None:
        if not args.title:
            console.error("Either --task-id or --title must be given")
            return ExitCode.ERROR
        data = {
            "title": args.title,
            "description": args.description,
            "details": args.details,
            "status": args.status,
            "dependencies": [d.strip() for d in (args.dependencies or "").split(",") if d.strip()],
        }

    result = add_subtask(
        ctx.store,
        args.parent,
        existing_task_id=args.task_id,
        data=data,
        sync_service=ctx.service,
    )

    if console.json_mode:
        console.emit_json(
            {
                "success": True,
                "subtask": {**result.subtask.to_dict(), "id": result.compound_id},
                "convertedFrom": result.converted_from,
                "ticketing": result.ticketing.to_dict() if result.ticketing else None,
            }
        )
        return ExitCode.SUCCESS

    if result.converted_from is not None:
        console.success(f"Converted task {result.converted_from} to subtask {result.compound_id}")
    else:
        console.success(f"Added subtask {result.compound_id}: {result.subtask.title}")
    console.ticketing_outcome(f"Ticket for {result.compound_id}", result.ticketing)
    return ExitCode.SUCCESS


def run_remove_subtask(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    _warn_ticketing_config(console, ctx)
    result = remove_subtask(
        ctx.store, args.id, convert_to_task=args.convert, sync_service=ctx.service
    )
    converted: Task | None = result.converted_task

    if console.json_mode:
        console.emit_json(
            {
                "success": True,
                "removed": args.id,
                "convertedTask": converted.to_dict() if converted else None,
                "ticketing": result.ticketing.to_dict() if result.ticketing else None,
            }
        )
        return ExitCode.SUCCESS

    if converted is not None:
        console.success(f"Converted subtask {args.id} to task {converted.id}")
    else:
        console.success(f"Removed subtask {args.id}")
    console.ticketing_outcome(f"Ticket for {args.id}", result.ticketing)
    return ExitCode.SUCCESS


def run_clear_subtasks(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    _warn_ticketing_config(console, ctx)
    result = clear_subtasks(ctx.store, args.id, sync_service=ctx.service)

    if console.json_mode:
        console.emit_json(
            {
                "success": True,
                "clearedSubtasks": result.cleared_ids,
                "skippedTasks": result.skipped_ids,
                "ticketing": [outcome.to_dict() for outcome in result.ticketing],
            }
        )
        return ExitCode.SUCCESS

    if result.cleared_ids:
        console.success(f"Cleared {result.cleared_count} subtasks: {', '.join(result.cleared_ids)}")
    for task_id in result.skipped_ids:
        console.info(f"Task {task_id} has no subtasks")
    for outcome in result.ticketing:
        console.ticketing_outcome("Ticket", outcome)
    return ExitCode.SUCCESS


def run_update_task(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    _warn_ticketing_config(console, ctx)
    given = {
        "title": args.title,
        "description": args.description,
        "details": args.details,
        "testStrategy": args.test_strategy,
        "priority": args.priority,
    }
    fields = {key: value for key, value in given.items() if value is not None}
    result = update_task(ctx.store, args.id, fields, sync_service=ctx.service)

    if console.json_mode:
        console.emit_json(
            {
                "success": True,
                "id": result.task_id,
                "changedFields": result.changed_fields,
                "ticketing": result.ticketing.to_dict() if result.ticketing else None,
            }
        )
        return ExitCode.SUCCESS

    if not result.changed:
        console.info(f"Task {args.id} unchanged")
        return ExitCode.SUCCESS
    console.success(f"Updated task {args.id}: {', '.join(result.changed_fields)}")
    console.ticketing_outcome(f"Ticket for {args.id}", result.ticketing)
    return ExitCode.SUCCESS


def _local_id(tree: TaskTree, item: Task | Subtask) -> str:
    if isinstance(item, Task):
        return str(item.id)
    parent = next(t for t in tree.tasks if any(s is item for s in t.subtasks))
    return item.compound_id(parent.id)


def run_ref_id(console: Console, args: argparse.Namespace, ctx: CommandContext) -> int:
    if args.ref is not None:
        tree = ctx.store.read()
        entity = ReferenceIdGenerator(enabled=True).find_entity_by_ref_id(tree, args.ref)
        local_id = _local_id(tree, entity) if entity is not None else None
        if console.json_mode:
            console.emit_json({"success": local_id is not None, "refId": args.ref, "id": local_id})
        elif local_id:
            console.print(local_id, force=True)
        else:
            console.error(f"No task carries reference id {args.ref}")
        return ExitCode.SUCCESS if local_id else ExitCode.ERROR

    if args.title is not None:
        ref_id = ReferenceIdGenerator.extract_ref_id(args.title)
    else:
        task, subtask = ctx.store.read().resolve(args.id)
        generator = ReferenceIdGenerator(enabled=True)
        ref_id = ReferenceIdGenerator.get_ref_id(subtask or task)
        if not ref_id:
            ref_id = (
                generator.generate_subtask_ref_id(task.id, subtask.id)
                if subtask is not None
                else generator.generate_task_ref_id(task.id)
            )

    if console.json_mode:
        console.emit_json({"success": ref_id is not None, "refId": ref_id})
    elif ref_id:
        console.print(ref_id, force=True)
    else:
        console.error("No reference id found")
    return ExitCode.SUCCESS if ref_id else ExitCode.ERROR


COMMANDS = {
    "sync-tickets": run_sync_tickets,
    "set-status": run_set_status,
    "remove-task": run_remove_task,
    "add-subtask": run_add_subtask,
    "remove-subtask": run_remove_subtask,
    "clear-subtasks": run_clear_subtasks,
    "update-task": run_update_task,
    "ref-id": run_ref_id,
}


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Arguments to parse (defaults to sys.argv).

    Returns:
        Process exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    redacting_filter = setup_logging(
        level=log_level,
        log_format=args.log_format,
        log_file=args.log_file,
        static_fields={"service": "ticketsync"} if args.log_format == "json" else None,
    )

    console = Console(
        color=not args.no_color,
        verbose=args.verbose,
        quiet=args.quiet,
        json_mode=args.output == "json",
    )

    ctx: CommandContext | None = None
    try:
        ctx = build_context(args, redacting_filter)
        return COMMANDS[args.command](console, args, ctx)

    except KeyboardInterrupt:
        console.print()
        console.warning("Interrupted by user")
        return ExitCode.SIGINT

    except Exception as e:
        console.error(str(e))
        if args.verbose:
            import traceback

            console.print()
            traceback.print_exc()
        if console.json_mode:
            console.emit_json({"success": False})
        return ExitCode.from_exception(e)

    finally:
        if ctx is not None:
            ctx.close()


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
