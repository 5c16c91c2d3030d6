"""
Typer CLI for the focus-gate service.

Commands:
    focusgate db init                 - Initialize database tables
    focusgate unlocks sweep           - Deactivate expired temporary unlocks
    focusgate unlocks active USER     - List a user's active unlocks
    focusgate challenge sample TYPE   - Preview a generated challenge
    focusgate progress level XP       - Show level progress for an XP total
    focusgate progress user USER      - Show a user's XP, level and streak
    focusgate serve                   - Run the API server
    focusgate version                 - Show version information

Usage:
    focusgate --help
    focusgate challenge sample math --difficulty 4
    focusgate unlocks sweep
"""

from __future__ import annotations

from uuid import UUID

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from src.core.logs import configure_logging

app = typer.Typer(
    help="focus-gate CLI: focus sessions, unlock challenges and progression",
    no_args_is_help=True,
)
console = Console()


def _engine(db):
    from src.gating import GatingConfig, GatingEngine

    return GatingEngine(db, GatingConfig.from_settings(get_settings()))


# ========================================
# Database
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from src.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# Unlocks
# ========================================

unlocks_app = typer.Typer(help="Temporary unlock maintenance")
app.add_typer(unlocks_app, name="unlocks")


@unlocks_app.command("sweep")
def unlocks_sweep() -> None:
    """Deactivate every unlock past its expiry."""
    from src.db.database import session_scope

    with session_scope() as db:
        count = _engine(db).cleanup()
    rprint(f"[green]✓[/green] Expired {count} unlock(s)")


@unlocks_app.command("active")
def unlocks_active(user_id: str = typer.Argument(..., help="User UUID")) -> None:
    """List a user's currently valid unlocks."""
    from src.db.database import session_scope

    with session_scope() as db:
        unlocks = _engine(db).list_active_unlocks(UUID(user_id))

        if not unlocks:
            rprint("[yellow]No active unlocks[/yellow]")
            return

        table = Table(title=f"Active Unlocks ({len(unlocks)})")
        table.add_column("Domain", style="cyan")
        table.add_column("Granted", style="dim")
        table.add_column("Expires", style="green")
        table.add_column("Used", justify="center")
        for unlock in unlocks:
            table.add_row(
                unlock.domain,
                unlock.granted_at.strftime("%H:%M:%S"),
                unlock.expires_at.strftime("%H:%M:%S"),
                "✓" if unlock.was_used else "",
            )
        console.print(table)


# ========================================
# Challenges
# ========================================

challenge_app = typer.Typer(help="Challenge catalog")
app.add_typer(challenge_app, name="challenge")


@challenge_app.command("sample")
def challenge_sample(
    challenge_type: str = typer.Argument(..., help="math, memory, typing, exercise, breathing, puzzle, reaction"),
    difficulty: int = typer.Option(2, "--difficulty", "-d", min=1, max=5),
    show_answer: bool = typer.Option(False, "--show-answer", help="Include the answer key"),
) -> None:
    """Generate a challenge without storing it."""
    from src.challenges import ChallengeCatalog

    try:
        generated = ChallengeCatalog().generate(challenge_type, difficulty)
    except ValueError:
        rprint(f"[red]✗[/red] Unknown challenge type: {challenge_type}")
        raise typer.Exit(code=1)

    payload = generated.content.to_storage() if show_answer else generated.content.public_view()
    table = Table(title=f"{generated.type.value} (difficulty {generated.difficulty}, {generated.xp_reward} XP)")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in payload.items():
        table.add_row(key, str(value))
    console.print(table)


# ========================================
# Progression
# ========================================

progress_app = typer.Typer(help="XP, level and streak")
app.add_typer(progress_app, name="progress")


@progress_app.command("level")
def progress_level(xp: int = typer.Argument(..., min=0, help="Total XP")) -> None:
    """Show where an XP total sits on the level curve."""
    from src.core.progression import level_progress

    progress = level_progress(xp)
    rprint(f"[bold]Level {progress.level}[/bold]  ({progress.total_xp} XP)")
    rprint(
        f"  {progress.xp_progress}/{progress.xp_required} toward level {progress.level + 1} "
        f"({progress.progress_percentage:.1f}%), {progress.xp_needed} XP needed"
    )


@progress_app.command("user")
def progress_user(user_id: str = typer.Argument(..., help="User UUID")) -> None:
    """Show a user's stored progression."""
    from src.db.database import session_scope
    from src.gating import GatingError

    with session_scope() as db:
        try:
            result = _engine(db).progress(UUID(user_id))
        except GatingError as exc:
            rprint(f"[red]✗[/red] {exc.message}")
            raise typer.Exit(code=1)

        user, progress = result.user, result.progress
        table = Table(title="Progression")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("XP", str(user.xp))
        table.add_row("Level", str(user.level))
        table.add_row("Next level in", f"{progress.xp_needed} XP")
        table.add_row("Streak", f"{user.streak} day(s)")
        table.add_row("Longest streak", f"{user.longest_streak} day(s)")
        console.print(table)


# ========================================
# Server
# ========================================


@app.command("serve")
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (defaults to API_HOST)"),
    port: int = typer.Option(None, "--port", help="Port (defaults to API_PORT)"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint("[bold]focus-gate[/bold] v0.1.0")
    rprint("  Focus sessions -> unlock challenges -> XP")


def main() -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    configure_logging("WARNING", settings.log_file, console_format="<level>{message}</level>")
    app()


if __name__ == "__main__":
    main()
