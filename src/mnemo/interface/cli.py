"""mnemo CLI — study a YAML deck file from the terminal."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer

from mnemo.application.config import AppConfig, resolve_config
from mnemo.application.review_service import ReviewService, ReviewStatus
from mnemo.application.scheduler import ReviewScheduler
from mnemo.consts import VERSION
from mnemo.domain.clock import SystemClock
from mnemo.domain.models import Card, StudyMode, rating_options
from mnemo.infrastructure.adapters import DeckFileError, YamlCardRepository
from mnemo.infrastructure.adapters.codec import encode_card

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemo: spaced-repetition scheduling for vocabulary decks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mnemo configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.ERROR, 1: logging.WARNING, 2: logging.INFO}  # 3+ is DEBUG

DeckArg = Annotated[
    Path | None,
    typer.Argument(help="Path to a YAML deck file. Defaults to 'deck_path' in config."),
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    version: Annotated[bool, typer.Option("--version", help="Show version and exit.")] = False,
):
    """Global settings for mnemo."""
    if version:
        typer.echo(f"mnemo {VERSION}")
        raise typer.Exit()

    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(ctx: typer.Context, **overrides) -> AppConfig:
    bonus = (ctx.obj or {}).get("verbose_bonus", 0)
    try:
        config = resolve_config({**overrides, "verbose": 1 + bonus if bonus else None})
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red", err=True)
        raise typer.Exit(2)

    logging.getLogger("mnemo").setLevel(_LOG_LEVELS.get(config.verbose, logging.DEBUG))
    return config


def _service(config: AppConfig) -> ReviewService:
    if config.deck_path is None:
        typer.secho(
            "No deck file given. Pass a path or set 'deck_path' in config.", fg="red", err=True
        )
        raise typer.Exit(2)

    return ReviewService(
        YamlCardRepository(config.deck_path),
        clock=SystemClock(),
        scheduler=ReviewScheduler(config.scheduler_config()),
    )


def _run(coro):
    try:
        return asyncio.run(coro)
    except DeckFileError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1)


def _card_line(card: Card) -> str:
    if card.is_new:
        when = "new"
    elif card.next_review_date is None:
        when = "due now"
    else:
        when = f"due {card.next_review_date:%Y-%m-%d %H:%M}"
    flag = " [mastered]" if card.mastered else ""
    return f"{card.id}  {card.front_text} -> {card.back_text}  ({when}){flag}"


def _echo_cards(cards: list[Card], json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps([encode_card(c) for c in cards], indent=2, ensure_ascii=False))
        return
    if not cards:
        typer.secho("No cards.", fg="yellow")
        return
    for card in cards:
        typer.echo(_card_line(card))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    front: Annotated[str, typer.Argument(help="Word or phrase to learn.")],
    back: Annotated[str, typer.Argument(help="Translation or definition.")],
    deck: Annotated[Path | None, typer.Option("--deck", "-d", help="Deck file.")] = None,
    language: Annotated[str | None, typer.Option(help="Language code, e.g. 'fr'.")] = None,
    category: Annotated[str | None, typer.Option(help="Free-form category.")] = None,
):
    """[bold green]Add[/bold green] a vocabulary card, due immediately."""
    service = _service(_resolve_with_overrides(ctx, deck_path=deck))
    card = _run(service.add_card(front, back, language=language, category=category))
    typer.secho(f"Added {card.id}", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    deck: DeckArg = None,
    mode: Annotated[
        StudyMode, typer.Option(help="Which cards to list: review, new, or all.")
    ] = StudyMode.REVIEW,
    json_output: JsonOpt = False,
):
    """List the cards a study mode would show right now."""
    service = _service(_resolve_with_overrides(ctx, deck_path=deck))
    _echo_cards(_run(service.due_cards(mode)), json_output)


@app.command()
def session(
    ctx: typer.Context,
    deck: DeckArg = None,
    limit: Annotated[int | None, typer.Option(help="Maximum cards in the session.")] = None,
    include_review: Annotated[
        bool | None, typer.Option("--review/--no-review", help="Include due review cards.")
    ] = None,
    include_new: Annotated[
        bool | None, typer.Option("--new/--no-new", help="Include never-rated cards.")
    ] = None,
    max_new: Annotated[int | None, typer.Option(help="Cap on new cards per session.")] = None,
    json_output: JsonOpt = False,
):
    """Build a study session: due reviews first, then new cards."""
    config = _resolve_with_overrides(
        ctx,
        deck_path=deck,
        session_limit=limit,
        include_review=include_review,
        include_new=include_new,
        max_new=max_new,
    )
    service = _service(config)
    cards = _run(
        service.study_session(
            config.session_limit,
            include_review=config.include_review,
            include_new=config.include_new,
            max_new=config.max_new,
        )
    )
    _echo_cards(cards, json_output)


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to rate.")],
    quality: Annotated[int, typer.Argument(help="Recall quality, 0 (blackout) to 5 (perfect).")],
    deck: Annotated[Path | None, typer.Option("--deck", "-d", help="Deck file.")] = None,
    json_output: JsonOpt = False,
):
    """Record a quality rating and reschedule the card."""
    service = _service(_resolve_with_overrides(ctx, deck_path=deck))
    outcome = _run(service.submit_rating(card_id, quality, submission_id=1))

    if outcome.status is ReviewStatus.INVALID_RATING:
        typer.secho(f"{outcome.error}. Please try again.", fg="red", err=True)
        raise typer.Exit(2)
    if not outcome.ok:
        typer.secho(outcome.error or outcome.status.value, fg="red", err=True)
        raise typer.Exit(1)

    card = outcome.card
    if json_output:
        typer.echo(json.dumps(encode_card(card), indent=2, ensure_ascii=False))
    else:
        typer.secho(
            f"{card.id}: next review in {card.interval} day(s) "
            f"on {card.next_review_date:%Y-%m-%d} (EF {card.easiness_factor:.2f})",
            fg="green",
        )


@app.command()
def master(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to mark.")],
    deck: Annotated[Path | None, typer.Option("--deck", "-d", help="Deck file.")] = None,
    unset: Annotated[bool, typer.Option("--unset", help="Clear the mastered flag.")] = False,
):
    """Mark a card as learned (or clear the flag with --unset)."""
    service = _service(_resolve_with_overrides(ctx, deck_path=deck))
    card = _run(service.set_mastered(card_id, mastered=not unset))
    if card is None:
        typer.secho(f"Card {card_id} not found", fg="red", err=True)
        raise typer.Exit(1)
    state = "mastered" if card.mastered else "not mastered"
    typer.secho(f"{card.id}: {state}", fg="green")


@app.command()
def stats(ctx: typer.Context, deck: DeckArg = None, json_output: JsonOpt = False):
    """Show progress statistics for a deck."""
    service = _service(_resolve_with_overrides(ctx, deck_path=deck))
    report = _run(service.report())

    if json_output:
        typer.echo(json.dumps(asdict(report), indent=2))
        return

    typer.echo(
        f"Total: {report.total}  Due today: {report.due_today}  New: {report.new}"
        f"  Review: {report.review}  Mastered: {report.mastered}"
    )
    typer.echo(
        f"Learning: {report.learning}  Matured: {report.matured}  Overdue: {report.overdue}"
    )
    typer.echo(
        f"Avg EF: {report.average_easiness:.2f}  Avg interval: {report.average_interval:.1f}d"
        f"  Retention: {report.retention_rate:.0f}%  Streak: {report.study_streak}d"
    )


@app.command()
def export(
    ctx: typer.Context,
    deck: DeckArg = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to file instead of stdout.")
    ] = None,
):
    """Export learning progress as JSON."""
    service = _service(_resolve_with_overrides(ctx, deck_path=deck))
    document = json.dumps(_run(service.export()), indent=2, ensure_ascii=False)

    if output is None:
        typer.echo(document)
    else:
        output.write_text(document + "\n", encoding="utf-8")
        typer.secho(f"Wrote {output}", fg="green")


@app.command()
def ratings(ctx: typer.Context, json_output: JsonOpt = False):
    """Show the quality rating scale."""
    config = _resolve_with_overrides(ctx)
    options = rating_options(config.pass_threshold)
    if json_output:
        typer.echo(json.dumps([asdict(o) for o in options], indent=2))
        return
    for option in options:
        mark = "pass" if option.passing else "fail"
        typer.echo(f"{option.value}  {option.label:<7} {option.description} ({mark})")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
