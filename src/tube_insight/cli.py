"""Typer CLI entry point for tube-insight."""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import Coroutine, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, TypeVar

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from tube_insight import __version__
from tube_insight.accounts import UserStore
from tube_insight.analysis import (
    analyze_comment_sentiment,
    analyze_thumbnail,
    compare_thumbnails,
    generate_channel_strategy,
)
from tube_insight.battle import compare_channels
from tube_insight.channels import analyze_channel_videos
from tube_insight.collector import SearchFilters, collect_videos_by_keyword
from tube_insight.commerce import PLAN_FOR_DURATION, CommerceStore
from tube_insight.config import Settings, format_validation_error
from tube_insight.exceptions import TubeInsightError
from tube_insight.export import ExportFormat, write_export
from tube_insight.instructions import InstructionStore
from tube_insight.library import Library
from tube_insight.llm import GenerativeClient, ImageInput
from tube_insight.logging import (
    configure_logging,
    generate_session_id,
    operation_logging_context,
)
from tube_insight.records import VideoRecord
from tube_insight.storage import CredentialStore, JsonFileStore, mask_secret
from tube_insight.trending import build_trending_report
from tube_insight.youtube import YouTubeClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="tube-insight",
    help="YouTube analytics and AI content toolkit for creators.",
    no_args_is_help=True,
)
keys_app = typer.Typer(help="Save and inspect API keys.")
coupons_app = typer.Typer(help="Generate, redeem and list coupons.")
instructions_app = typer.Typer(help="Persona instructions that prefix AI prompts.")

app.add_typer(keys_app, name="keys")
app.add_typer(coupons_app, name="coupons")
app.add_typer(instructions_app, name="instructions")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config YAML file."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]

_DURATIONS = ("any", "short", "medium", "long")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(config_path: Path | None = None, **overrides: Any) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    from pydantic import ValidationError

    try:
        return Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc


def _setup(config_path: Path | None, verbose: bool = False) -> tuple[Settings, JsonFileStore]:
    """Load settings, configure logging and open the key-value store.

    An unreadable store file stops the command here with exit code 1.
    """
    overrides: dict[str, Any] = {}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}
    settings = _load_settings(config_path, **overrides)
    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
        session_id=generate_session_id(),
    )
    store = JsonFileStore(settings.storage.path)
    with _handle_errors():
        store.keys()
    return settings, store


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn domain errors into a red message and exit code 1."""
    try:
        yield
    except TubeInsightError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _youtube_client(settings: Settings, store: JsonFileStore) -> YouTubeClient:
    return YouTubeClient.from_settings(settings, CredentialStore(store))


def _llm_client(settings: Settings, store: JsonFileStore) -> GenerativeClient:
    return GenerativeClient.from_settings(settings, CredentialStore(store))


def _persona(store: JsonFileStore) -> str:
    return InstructionStore(store).active().content


def _create_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=err_console,
    )


def _read_image(path: Path) -> ImageInput:
    if not path.is_file():
        raise typer.BadParameter(f"Image not found: {path}")
    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    return ImageInput(data=path.read_bytes(), mime_type=mime_type)


def _parse_duration(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"Not a number: {raw!r}") from exc
    if value not in PLAN_FOR_DURATION:
        allowed = ", ".join(f"{d:g}" for d in PLAN_FOR_DURATION)
        raise typer.BadParameter(f"Duration must be one of: {allowed}")
    return int(value) if value.is_integer() else value


def _video_table(title: str, videos: Sequence[VideoRecord], limit: int) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("Type")
    table.add_column("Views", justify="right")
    table.add_column("Likes", justify="right")
    table.add_column("Comments", justify="right")
    table.add_column("Score", justify="right", style="green")
    for index, video in enumerate(videos[:limit], start=1):
        table.add_row(
            str(index),
            video.title,
            video.video_type,
            f"{video.view_count:,}",
            f"{video.like_count:,}",
            f"{video.comment_count:,}",
            f"{video.popularity_score:.2f}",
        )
    return table


def _bullets(items: Sequence[Any]) -> str:
    return "\n".join(f"- {item}" for item in items) or "-"


def _thumbnail_panel(label: str, result: dict[str, Any]) -> Panel:
    scores = result["scores"]
    feedback = result["feedback"]
    body = (
        f"[bold]Overall:[/bold] {result['overallScore']}\n"
        f"Visibility {scores['visibility']} | Curiosity {scores['curiosity']} | "
        f"Readability {scores['textReadability']} | Design {scores['design']}\n\n"
        f"[green]Strengths[/green]\n{_bullets(feedback['strengths'])}\n\n"
        f"[red]Weaknesses[/red]\n{_bullets(feedback['weaknesses'])}\n\n"
        f"[yellow]Improvements[/yellow]\n{_bullets(feedback['improvements'])}"
    )
    return Panel(body, title=label, border_style="cyan")


# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]tube-insight[/bold] {__version__}")
        raise typer.Exit


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """tube-insight global options."""


# ---------------------------------------------------------------------------
# Analysis commands
# ---------------------------------------------------------------------------


async def _collect(
    settings: Settings,
    store: JsonFileStore,
    keyword: str,
    count: int,
    filters: SearchFilters,
) -> list[VideoRecord]:
    with _create_progress() as progress:
        task = progress.add_task(f"Collecting '{keyword}'", total=count)

        def on_progress(done: int) -> None:
            progress.update(task, completed=done)

        async with _youtube_client(settings, store) as youtube:
            return await collect_videos_by_keyword(
                youtube,
                keyword,
                count,
                filters,
                on_progress,
                page_size=settings.youtube.page_size,
                ceiling=settings.youtube.safety_ceiling,
            )


@app.command()
def search(
    keyword: Annotated[str, typer.Argument(help="Search keyword.")],
    count: Annotated[
        int, typer.Option("--count", "-n", min=1, help="Number of videos to collect.")
    ] = 50,
    category: Annotated[
        str, typer.Option("--category", help="Video category ID ('0' for any).")
    ] = "0",
    duration: Annotated[
        str, typer.Option("--duration", help="any, short, medium or long.")
    ] = "any",
    top: Annotated[int, typer.Option("--top", help="Rows to display.")] = 20,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Collect videos for a keyword and rank them by popularity."""
    if duration not in _DURATIONS:
        raise typer.BadParameter(f"Duration must be one of: {', '.join(_DURATIONS)}")
    settings, store = _setup(config, verbose)
    filters = SearchFilters(category_id=category, duration=duration)  # type: ignore[arg-type]

    with _handle_errors(), operation_logging_context("search", keyword=keyword):
        videos = _run(_collect(settings, store, keyword, count, filters))

    Library(store).add_to_history("keyword", keyword, title=keyword)
    ranked = sorted(videos, key=lambda video: video.popularity_score, reverse=True)
    console.print(_video_table(f"'{keyword}' ({len(videos)} videos)", ranked, top))


@app.command()
def export(
    keyword: Annotated[str, typer.Argument(help="Search keyword.")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Destination file.")],
    fmt: Annotated[
        str, typer.Option("--format", "-f", help="Output format: 'json' or 'csv'.")
    ] = "csv",
    count: Annotated[
        int, typer.Option("--count", "-n", min=1, help="Number of videos to collect.")
    ] = 50,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Collect videos for a keyword and write them to a file."""
    if fmt not in ("json", "csv"):
        raise typer.BadParameter("Format must be 'json' or 'csv'.")
    export_format: ExportFormat = "csv" if fmt == "csv" else "json"
    settings, store = _setup(config, verbose)

    with _handle_errors(), operation_logging_context("export", keyword=keyword):
        videos = _run(_collect(settings, store, keyword, count, SearchFilters()))

    path = write_export(videos, output, export_format)
    console.print(f"[green]Exported {len(videos)} videos to[/green] {path}")


@app.command()
def channel(
    query: Annotated[str, typer.Argument(help="Channel ID or name.")],
    strategy: Annotated[
        bool, typer.Option("--strategy", help="Also generate an AI strategy report.")
    ] = False,
    top: Annotated[int, typer.Option("--top", help="Rows to display.")] = 10,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Analyze a channel's recent uploads and upload cadence."""
    settings, store = _setup(config, verbose)

    async def _analyze() -> tuple[Any, dict[str, Any] | None]:
        async with _youtube_client(settings, store) as youtube:
            analysis = await analyze_channel_videos(youtube, query)
        report = None
        if strategy and analysis.videos:
            llm = _llm_client(settings, store)
            report = await generate_channel_strategy(
                llm, analysis.videos, persona=_persona(store)
            )
        return analysis, report

    with _handle_errors(), operation_logging_context("channel", query=query):
        analysis, report = _run(_analyze())

    info = analysis.channel
    Library(store).add_to_history("channel", info.id, info.title, info.thumbnail_url or None)
    stats = analysis.stats
    console.print(
        Panel(
            f"Subscribers: {info.subscriber_count:,}\n"
            f"Total views: {info.view_count:,}\n"
            f"Videos: {info.video_count:,}\n"
            f"First video in sample: {stats.first_video_date or '-'}\n"
            f"Average upload interval: {stats.average_upload_interval_all or '-'}\n"
            f"Recent upload interval: {stats.average_upload_interval_recent or '-'}",
            title=info.title or info.id,
            border_style="cyan",
        )
    )
    if analysis.videos:
        console.print(_video_table("Top videos", analysis.videos, top))
    if report is not None:
        core = report["coreConcept"]
        console.print(Panel(core["description"], title=core["title"], border_style="green"))


@app.command()
def battle(
    channel_a: Annotated[str, typer.Argument(help="First channel ID or name.")],
    channel_b: Annotated[str, typer.Argument(help="Second channel ID or name.")],
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Compare two channels head to head."""
    settings, store = _setup(config, verbose)

    async def _battle() -> Any:
        async with _youtube_client(settings, store) as youtube:
            return await compare_channels(
                channel_a,
                channel_b,
                youtube,
                _llm_client(settings, store),
                persona=_persona(store),
            )

    with _handle_errors(), operation_logging_context(
        "battle", channel_a=channel_a, channel_b=channel_b
    ):
        result = _run(_battle())

    table = Table(title="Channel Battle", show_lines=True)
    table.add_column("Metric", style="cyan")
    table.add_column(result.channel_a.title or "A", justify="right")
    table.add_column(result.channel_b.title or "B", justify="right")
    rows = (
        ("Subscribers", f"{result.stats_a.subscribers:,}", f"{result.stats_b.subscribers:,}"),
        ("Total views", f"{result.stats_a.total_views:,}", f"{result.stats_b.total_views:,}"),
        ("Average views", f"{result.stats_a.avg_views:,.1f}", f"{result.stats_b.avg_views:,.1f}"),
        (
            "Engagement",
            f"{result.stats_a.engagement_rate:.2f}%",
            f"{result.stats_b.engagement_rate:.2f}%",
        ),
        (
            "Uploads / 30 days",
            f"{result.stats_a.upload_frequency:.1f}",
            f"{result.stats_b.upload_frequency:.1f}",
        ),
        ("Power score", f"{result.stats_a.power_score:.1f}", f"{result.stats_b.power_score:.1f}"),
    )
    for row in rows:
        table.add_row(*row)
    console.print(table)

    if result.winner == "Tie":
        console.print("[bold yellow]Result: tie[/bold yellow]")
    else:
        winner = result.channel_a if result.winner == "A" else result.channel_b
        console.print(f"[bold green]Winner:[/bold green] {winner.title or winner.id}")
    if result.summary:
        console.print(Panel(result.summary, title="Summary", border_style="dim"))


@app.command()
def trending(
    region: Annotated[
        str | None, typer.Option("--region", "-r", help="Two-letter region code.")
    ] = None,
    category: Annotated[
        str, typer.Option("--category", help="Video category ID ('0' for all).")
    ] = "0",
    count: Annotated[int, typer.Option("--count", "-n", min=1, max=50)] = 50,
    top: Annotated[int, typer.Option("--top", help="Rows to display.")] = 20,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the most-popular chart with AI trend keywords and rising creators."""
    settings, store = _setup(config, verbose)

    async def _trending() -> Any:
        async with _youtube_client(settings, store) as youtube:
            return await build_trending_report(
                youtube,
                _llm_client(settings, store),
                region_code=region,
                category_id=category,
                max_results=count,
            )

    with _handle_errors(), operation_logging_context("trending", region=region):
        report = _run(_trending())

    console.print(_video_table(f"Trending in {report.region_code}", report.videos, top))

    if report.keywords:
        table = Table(title="Trend keywords")
        table.add_column("Rank", justify="right")
        table.add_column("Keyword", style="cyan")
        table.add_column("Videos", justify="right")
        table.add_column("Total views", justify="right")
        for item in report.keywords:
            table.add_row(
                str(item.get("rank", "")),
                str(item.get("keyword", "")),
                str(item.get("videoCount", "")),
                str(item.get("totalViews", "")),
            )
        console.print(table)

    if report.creators:
        table = Table(title="Rising creators")
        table.add_column("Rank", justify="right")
        table.add_column("Creator", style="cyan")
        table.add_column("Trending videos", justify="right")
        for item in report.creators:
            table.add_row(
                str(item.get("rank", "")),
                str(item.get("name", "")),
                str(item.get("videoCount", "")),
            )
        console.print(table)


@app.command()
def thumbnail(
    image: Annotated[Path, typer.Argument(help="Thumbnail image file.")],
    compare_with: Annotated[
        Path | None,
        typer.Option("--compare", help="Second thumbnail for an A/B comparison."),
    ] = None,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Score a thumbnail, or compare two."""
    settings, store = _setup(config, verbose)
    image_a = _read_image(image)
    image_b = _read_image(compare_with) if compare_with else None
    llm = _llm_client(settings, store)
    persona = _persona(store)

    with _handle_errors(), operation_logging_context("thumbnail", compare=image_b is not None):
        if image_b is None:
            results = [_run(analyze_thumbnail(llm, image_a, persona=persona))]
        else:
            results = list(_run(compare_thumbnails(llm, image_a, image_b, persona=persona)))

    for label, result in zip(("A", "B"), results, strict=False):
        console.print(_thumbnail_panel(label, dict(result)))


@app.command()
def comments(
    video_id: Annotated[str, typer.Argument(help="YouTube video ID.")],
    limit: Annotated[int, typer.Option("--limit", min=1, max=100)] = 100,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Analyze the sentiment of a video's top-level comments."""
    settings, store = _setup(config, verbose)

    async def _comments() -> Any:
        async with _youtube_client(settings, store) as youtube:
            texts = await youtube.get_video_comments(video_id, max_results=limit)
        if not texts:
            return None
        return await analyze_comment_sentiment(
            _llm_client(settings, store), texts, persona=_persona(store)
        )

    with _handle_errors(), operation_logging_context("comments", video_id=video_id):
        result = _run(_comments())

    if result is None:
        console.print("[yellow]No comments found.[/yellow]")
        return

    sentiment = result["sentiment"]
    summary = result["summary"]
    console.print(
        Panel(
            f"Positive {sentiment['positive']} | Neutral {sentiment['neutral']} | "
            f"Negative {sentiment['negative']}\n"
            f"Keywords: {', '.join(map(str, result['keywords'])) or '-'}\n\n"
            f"[green]Pros[/green]\n{_bullets(summary['pros'])}\n\n"
            f"[red]Cons[/red]\n{_bullets(summary['cons'])}\n\n"
            f"[bold]Verdict:[/bold] {summary['oneLine']}",
            title=f"Comments on {video_id}",
            border_style="cyan",
        )
    )


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


@keys_app.command("set")
def keys_set(
    service: Annotated[str, typer.Argument(help="'youtube' or 'llm'.")],
    key: Annotated[str, typer.Argument(help="The API key.")],
    config: ConfigOption = None,
) -> None:
    """Save an API key to the local store."""
    _, store = _setup(config)
    credentials = CredentialStore(store)
    if service == "youtube":
        credentials.set_youtube_api_key(key)
    elif service == "llm":
        credentials.set_llm_api_key(key)
    else:
        raise typer.BadParameter("Service must be 'youtube' or 'llm'.")
    console.print(f"[green]Saved {service} key:[/green] {mask_secret(key.strip())}")


@keys_app.command("show")
def keys_show(
    check: Annotated[
        bool, typer.Option("--check", help="Validate each key with a test call.")
    ] = False,
    config: ConfigOption = None,
) -> None:
    """Show which API keys are configured."""
    settings, store = _setup(config)
    credentials = CredentialStore(store)

    table = Table(title="API Keys")
    table.add_column("Service", style="cyan")
    table.add_column("Key")
    if check:
        table.add_column("Status")

    async def _check() -> tuple[bool, bool]:
        llm = _llm_client(settings, store)
        async with _youtube_client(settings, store) as youtube:
            youtube_ok = (await youtube.validate_key()).ok
        return youtube_ok, await llm.validate_key()

    statuses: tuple[bool, bool] | None = _run(_check()) if check else None
    entries = (
        ("youtube", credentials.resolve_youtube_api_key(settings)),
        ("llm", credentials.resolve_llm_api_key(settings)),
    )
    for index, (service, secret) in enumerate(entries):
        row = [service, mask_secret(secret)]
        if statuses is not None:
            row.append("[green]OK[/green]" if statuses[index] else "[red]FAIL[/red]")
        table.add_row(*row)
    console.print(table)


# ---------------------------------------------------------------------------
# Commerce
# ---------------------------------------------------------------------------


@app.command()
def plans(
    plan_id: Annotated[
        str | None, typer.Option("--plan", help="Plan ID whose price to change.")
    ] = None,
    price: Annotated[int | None, typer.Option("--price", help="New price for --plan.")] = None,
    reset: Annotated[
        bool, typer.Option("--reset", help="Restore the default plan catalogue.")
    ] = False,
    config: ConfigOption = None,
) -> None:
    """List subscription plans, optionally changing a price first."""
    _, store = _setup(config)
    commerce = CommerceStore(store)

    with _handle_errors():
        if reset:
            catalogue = commerce.reset_plans()
        elif plan_id is not None and price is not None:
            catalogue = commerce.update_plan_price(plan_id, price)
        else:
            catalogue = commerce.get_plans()

    table = Table(title="Subscription Plans", show_lines=True)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Months", justify="right")
    table.add_column("Discount", justify="right")
    for plan in catalogue:
        table.add_row(
            plan.id,
            plan.name,
            f"{plan.price:,}",
            str(plan.duration_months),
            f"{plan.discount}%" if plan.discount else "-",
        )
    console.print(table)


@coupons_app.command("generate")
def coupons_generate(
    duration: Annotated[
        str, typer.Option("--duration", "-d", help="Months: 0.5, 1, 3, 6 or 12.")
    ] = "1",
    count: Annotated[int, typer.Option("--count", "-n", min=1, max=1000)] = 1,
    config: ConfigOption = None,
) -> None:
    """Create unused coupon codes."""
    months = _parse_duration(duration)
    _, store = _setup(config)
    with _handle_errors():
        created = CommerceStore(store).generate_coupons(months, count)
    for coupon in created:
        console.print(coupon.code)
    err_console.print(f"[green]Generated {len(created)} coupon(s).[/green]")


@coupons_app.command("redeem")
def coupons_redeem(
    code: Annotated[str, typer.Argument(help="Coupon code.")],
    email: Annotated[str, typer.Option("--email", "-e", help="Redeeming user's email.")],
    config: ConfigOption = None,
) -> None:
    """Redeem a coupon for a user, creating the user if needed."""
    _, store = _setup(config)
    users = UserStore(store)
    commerce = CommerceStore(store)

    with _handle_errors(), operation_logging_context("redeem"):
        user = commerce.redeem_coupon(users.get_or_create(email), code)
        users.save(user)

    subscription = user.subscription
    if subscription is not None:
        console.print(
            f"[green]Coupon redeemed.[/green] {commerce.plan_label(subscription.plan)} "
            f"until {subscription.end_date:%Y-%m-%d}"
        )


@coupons_app.command("list")
def coupons_list(
    unused: Annotated[bool, typer.Option("--unused", help="Only unused coupons.")] = False,
    config: ConfigOption = None,
) -> None:
    """List issued coupons."""
    _, store = _setup(config)
    coupons = CommerceStore(store).get_coupons()
    if unused:
        coupons = [coupon for coupon in coupons if not coupon.is_used]

    table = Table(title="Coupons")
    table.add_column("Code", style="cyan")
    table.add_column("Months", justify="right")
    table.add_column("Used")
    table.add_column("Used by")
    table.add_column("Created")
    for coupon in coupons:
        table.add_row(
            coupon.code,
            f"{coupon.duration_months:g}",
            "yes" if coupon.is_used else "no",
            coupon.used_by or "-",
            f"{coupon.created_at:%Y-%m-%d}",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------


@instructions_app.command("list")
def instructions_list(config: ConfigOption = None) -> None:
    """List persona instructions."""
    _, store = _setup(config)
    table = Table(title="Instructions")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Active", justify="center")
    for item in InstructionStore(store).load():
        table.add_row(item.id, item.name, "[green]*[/green]" if item.is_active else "")
    console.print(table)


@instructions_app.command("activate")
def instructions_activate(
    instruction_id: Annotated[str, typer.Argument(help="Instruction ID.")],
    config: ConfigOption = None,
) -> None:
    """Make one persona instruction the active one."""
    _, store = _setup(config)
    with _handle_errors():
        item = InstructionStore(store).activate(instruction_id)
    console.print(f"[green]Active instruction:[/green] {item.name}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
