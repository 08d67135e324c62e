"""
Output - Console output formatting.

Provides pretty-printed output with colors and formatting.
"""

import json
import sys
from typing import Any

from ticketsync.application.sync import ConversionOutcome, SyncOutcome, TicketSyncSummary


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"

    BG_YELLOW = "\033[43m"


class Symbols:
    """Unicode symbols for terminal output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    GEAR = "⚙"
    LINK = "🔗"

    BOX_H = "─"


class Console:
    """
    Console output helper with colors and formatting.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        quiet: Whether to suppress most output (for CI/scripting).
        json_mode: Whether to output JSON format for programmatic use.
    """

    def __init__(
        self,
        color: bool = True,
        verbose: bool = False,
        quiet: bool = False,
        json_mode: bool = False,
    ):
        """
        Initialize the console output helper.

        Args:
            color: Enable colored output. Automatically disabled if stdout is not a TTY.
            verbose: Enable verbose debug output.
            quiet: Suppress most output, only show errors and final summary.
            json_mode: Output JSON format instead of text.
        """
        self.json_mode = json_mode
        self.color = color and sys.stdout.isatty() and not json_mode
        self.verbose = verbose
        self.quiet = quiet or json_mode

        self._json_errors: list[str] = []
        self._last_progress_message = ""

        if self.quiet:
            self.verbose = False

    def _c(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    # -------------------------------------------------------------------------
    # Basic Output
    # -------------------------------------------------------------------------

    def print(self, text: str = "", force: bool = False) -> None:
        if self.quiet and not force:
            return
        print(text)

    def header(self, text: str) -> None:
        """Print a prominent header with borders."""
        if self.quiet:
            return
        width = max(len(text) + 4, 50)
        border = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        if self.quiet:
            return
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """
        Print an error message with cross symbol.

        Always prints, even in quiet mode. Collected in JSON mode.
        """
        if self.json_mode:
            self._json_errors.append(text)
            return
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED))

    def warning(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"    {text}", Colors.DIM))

    def debug(self, text: str) -> None:
        if self.verbose:
            self.print(self._c(f"  [DEBUG] {text}", Colors.DIM))

    def item(self, text: str, status: str | None = None) -> None:
        """
        Print a list item with optional status indicator.

        Args:
            text: Item text to display.
            status: "ok", "skip", "fail", or any other label shown dimmed.
        """
        if self.quiet:
            return
        status_str = ""
        if status == "ok":
            status_str = self._c(f" [{Symbols.CHECK}]", Colors.GREEN)
        elif status == "skip":
            status_str = self._c(" [SKIP]", Colors.YELLOW)
        elif status == "fail":
            status_str = self._c(f" [{Symbols.CROSS}]", Colors.RED)
        elif status:
            status_str = self._c(f" [{status}]", Colors.DIM)

        self.print(f"    {Symbols.DOT} {text}{status_str}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """Print a table, sizing each column to its widest cell."""
        if self.quiet:
            return
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        self.print(
            "  " + "  ".join(self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers))
        )
        self.print("  " + "  ".join("-" * w for w in widths))
        for row in rows:
            self.print(
                "  "
                + "  ".join(
                    str(cell).ljust(widths[i]) if i < len(widths) else str(cell)
                    for i, cell in enumerate(row)
                )
            )

    def progress(self, current: int, total: int, message: str = "") -> None:
        """
        Print an updating progress bar.

        Updates in place on a terminal, prints one line per message otherwise.
        """
        if self.quiet or total <= 0:
            return

        width = 30
        filled = int(width * current / total)
        bar = "█" * filled + "░" * (width - filled)
        pct = int(100 * current / total)

        if sys.stdout.isatty():
            sys.stdout.write(f"\r  [{bar}] {pct:>3}% {message:<25}")
            sys.stdout.flush()
            if current >= total:
                self.print()
        elif message != self._last_progress_message:
            self._last_progress_message = message
            self.print(f"  [{bar}] {pct:>3}% {message}")

    def dry_run_banner(self) -> None:
        if self.quiet:
            return
        self.print()
        banner = f"  {Symbols.GEAR} DRY-RUN MODE - tasks file and tickets will not be changed"
        if self.color:
            self.print(f"{Colors.BG_YELLOW}{Colors.BOLD}{banner}{Colors.RESET}")
        else:
            self.print(f"*** {banner} ***")
        self.print()

    def config_errors(self, errors: list[str]) -> None:
        """Print configuration errors. Always prints, even in quiet mode."""
        if self.json_mode:
            self._json_errors.extend(errors)
            return
        print(self._c(f"  {Symbols.CROSS} Configuration errors:", Colors.RED))
        for error in errors:
            print(f"    {Symbols.DOT} {error}")
        print(
            "    Set the values in .taskmasterconfig or the environment "
            "(see TICKETING_SYSTEM, JIRA_*, GITHUB_*, AZURE_*)."
        )

    def emit_json(self, payload: dict[str, Any]) -> None:
        """Print a JSON document, merging in any collected errors."""
        if self._json_errors:
            payload = {**payload, "errors": list(payload.get("errors", [])) + self._json_errors}
        print(json.dumps(payload, indent=2, default=str))

    # -------------------------------------------------------------------------
    # Ticketing Results
    # -------------------------------------------------------------------------

    def ticketing_outcome(self, label: str, outcome: SyncOutcome | ConversionOutcome | None) -> None:
        """Print the remote side of a lifecycle command."""
        if outcome is None or self.quiet:
            return

        if isinstance(outcome, ConversionOutcome):
            self.ticketing_outcome(f"{label} (close old ticket)", outcome.cancelled)
            self.ticketing_outcome(f"{label} (create new ticket)", outcome.created)
            return

        if outcome.is_not_available:
            self.debug(f"{label}: ticketing not available")
        elif outcome.success:
            key = f" {Symbols.LINK} {outcome.ticket_key}" if outcome.ticket_key else ""
            self.item(f"{label}{key}", outcome.action or "ok")
        else:
            self.item(f"{label}: {outcome.error}", "fail")

    def sync_summary(self, summary: TicketSyncSummary, dry_run: bool = False) -> None:
        """
        Print a batch reconciliation summary.

        In JSON mode, outputs a structured JSON object.
        In quiet mode, prints a single line summary suitable for CI/scripting.
        """
        if self.json_mode:
            self.emit_json({**summary.to_dict(), "dryRun": dry_run})
            return

        if self.quiet:
            status = "OK" if summary.success else "FAILED"
            mode = "dry-run" if dry_run else "executed"
            parts = [
                f"status={status}",
                f"mode={mode}",
                f"processed={summary.processed}",
                f"created={summary.created}",
                f"linked={summary.updated}",
                f"skipped={summary.skipped}",
            ]
            if summary.errors:
                parts.append(f"errors={summary.error_count}")
            print(" ".join(parts))
            for e in summary.errors:
                print(f"ERROR: {e}")
            return

        self.print()
        self.section("Sync Complete")
        self.print()

        if dry_run:
            self.print(self._c(f"  {Symbols.GEAR} Mode: DRY-RUN (no changes made)", Colors.YELLOW))
        else:
            self.print(self._c(f"  {Symbols.CHECK} Mode: LIVE EXECUTION", Colors.GREEN))
        self.print()

        self.table(
            ["Entity", "Created", "Linked"],
            [
                ["Tasks", str(summary.tasks_created), str(summary.tasks_updated)],
                ["Subtasks", str(summary.subtasks_created), str(summary.subtasks_updated)],
            ],
        )
        self.print()
        self.detail(f"Processed: {summary.processed}, already in sync: {summary.skipped}")

        if summary.errors:
            self.print()
            self.error(f"{summary.error_count} error(s):")
            for e in summary.errors[:10]:
                self.detail(e)
            if summary.error_count > 10:
                self.detail(f"... and {summary.error_count - 10} more")

        self.print()
        if summary.success:
            self.success("Sync completed successfully!")
        else:
            self.error("Sync completed with errors")

    def confirm(self, message: str) -> bool:
        """
        Ask the user for confirmation.

        Returns:
            True if user confirmed (y/yes), False otherwise or on interrupt.
        """
        prompt = self._c(f"\n{Symbols.WARN} {message} (y/N): ", Colors.YELLOW)
        try:
            response = input(prompt).strip().lower()
            return response in ("y", "yes")
        except (EOFError, KeyboardInterrupt):
            self.print()
            return False
