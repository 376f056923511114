"""CLI for ``ledger_sync``.

``ledger-sync sync --feed-dir DIR`` reads the feed exports in ``DIR``, fetches
the YNAB budget named by ``BUDGET_ID`` with ``YNAB_API_KEY``, reconciles and
applies the resulting plan. ``--dry-run`` prints the plan instead. A local
``.env`` is loaded with ``python-dotenv`` (never overriding the environment)
before settings are built.

Exit codes: ``0`` on success (including runs where individual mutations
failed; those are logged), ``1`` on any fatal error.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .config import Settings
from .engine import ReconciliationResult, run
from .errors import LedgerSyncError
from .feed import DirectoryFeed
from .logging_setup import configure_logging
from .models import format_transaction
from .planner import ApplyReport, StaleAction
from .ynab_client import YnabClient

app = typer.Typer(add_completion=False, help="Reconcile a bank feed into a YNAB budget.")

# Module-level option object (ruff B008: no calls in parameter defaults).
FEED_DIR_OPTION: OptionInfo = typer.Option(
    ...,
    "--feed-dir",
    help="Directory with <Account Name>.csv and optional <Account Name>.pending.json files.",
    file_okay=False,
    dir_okay=True,
    exists=False,  # reported by the handler with a clean message
)


def _render_plan(result: ReconciliationResult, scale: int) -> list[str]:
    plan = result.plan
    lines: list[str] = []
    for d in plan.stale:
        verb = "flag stale" if d.action == StaleAction.FLAG else "delete stale"
        lines.append(f"{verb}: {format_transaction(d.existing, amount_scale=scale)}")
    for e in plan.delete_posted:
        lines.append(f"delete posted: {format_transaction(e, amount_scale=scale)}")
    for c in plan.create:
        lines.append(f"create: {format_transaction(c, amount_scale=scale)} [{c.import_id}]")
    return lines


def _render_report(report: ApplyReport) -> str:
    return (
        f"flagged={report.flagged} deleted={report.deleted} "
        f"submitted={report.submitted} failures={len(report.failures)}"
    )


def cmd_sync(
    feed_dir: str,
    *,
    dry_run: bool = False,
    budget_id: str | None = None,
) -> int:
    """Run one reconciliation against YNAB and return the process exit code."""

    try:
        settings = Settings.from_env(budget_id=budget_id)
        client = YnabClient.from_settings(settings)
        result, report = run(settings, client, DirectoryFeed(feed_dir), dry_run=dry_run)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except LedgerSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if report is None:
        lines = _render_plan(result, settings.amount_scale)
        for line in lines:
            typer.echo(line)
        if not lines:
            typer.echo("Nothing to do.")
        return 0

    typer.echo(f"All done. {_render_report(report)}")
    return 0


@app.command("sync")
def sync_cmd(
    feed_dir: Annotated[Path, FEED_DIR_OPTION],
    *,
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the plan; change nothing."),
    budget_id: str | None = typer.Option(None, help="Override BUDGET_ID (falls back to env var)."),
) -> None:
    code = cmd_sync(str(feed_dir), dry_run=dry_run, budget_id=budget_id)
    raise typer.Exit(code)


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (default: $LEDGER_SYNC_LOG_LEVEL or INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


if __name__ == "__main__":  # pragma: no cover
    app()
