"""
Typer CLI for practice-analytics.

Commands:
    practice-analytics report USER CLASS           - Full analytics report
    practice-analytics report USER CLASS --json    - Report as JSON
    practice-analytics weak-skills USER CLASS      - Weakest skills with review questions
    practice-analytics practice USER CLASS         - Prioritized practice set
    practice-analytics record USER QUESTION_ID     - Record one answer
    practice-analytics import-attempts USER FILE   - Import attempts from a JSON export
    practice-analytics units CLASS                 - List units and subtopics

Usage:
    practice-analytics --help
    practice-analytics record alice q-101 --incorrect --time 45 --class "AP Biology"
    practice-analytics report alice "AP Biology" --json
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from practice_analytics.analytics.engine import AnalyticsService
from practice_analytics.analytics.report import AnalyticsReport, BucketStat
from practice_analytics.attempts.models import ensure_attempt_defaults
from practice_analytics.attempts.store import AttemptStore
from practice_analytics.bank.loader import QuestionBankLoader
from practice_analytics.exceptions import PracticeAnalyticsError

app = typer.Typer(
    help="practice-analytics CLI: question bank + attempts -> learning analytics",
    no_args_is_help=True,
)

console = Console()


def _pct(value: float) -> str:
    return f"{value * 100:.0f}%"


def _accuracy_style(value: float) -> str:
    if value >= 0.85:
        return "green"
    if value >= 0.70:
        return "yellow"
    return "red"


def _load_report(user_id: str, class_name: str, refresh: bool = False) -> AnalyticsReport:
    service = AnalyticsService.from_settings()
    try:
        report = asyncio.run(
            service.compute_advanced_analytics(user_id, class_name, refresh=refresh)
        )
    finally:
        service.store.close()

    if report is None:
        console.print(f"[red]Error: no question bank available for {class_name!r}[/red]")
        raise typer.Exit(code=1)
    return report


# ========================================
# Rendering
# ========================================


def _bucket_table(title: str, rows: list[BucketStat], key_header: str) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column(key_header, style="cyan")
    table.add_column("Attempted", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Avg Time", justify="right")
    table.add_column("Unanswered", justify="right")

    for row in rows:
        table.add_row(
            row.key,
            f"{row.attempted_questions}/{row.total_questions}",
            f"[{_accuracy_style(row.accuracy)}]{_pct(row.accuracy)}[/]",
            f"{row.avg_time_seconds:.1f}s",
            str(row.unanswered),
        )
    return table


def _render_weak_skills(report: AnalyticsReport) -> None:
    if not report.weak_skills:
        rprint("[green]✓[/green] No weak skills detected")
        return

    table = Table(title="Weak Skills", show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Accuracy", justify="right", style="red")
    table.add_column("Mastery", justify="right")
    table.add_column("Mistakes", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Review", justify="right")

    for weak in report.weak_skills:
        table.add_row(
            weak.skill,
            _pct(weak.accuracy),
            _pct(weak.mastery),
            str(weak.mistake_count),
            f"{weak.confidence:.1f}" if weak.confidence is not None else "-",
            str(len(weak.question_ids)),
        )
    console.print(table)


def _render_practice(report: AnalyticsReport) -> None:
    if not report.practice_questions:
        rprint("[green]✓[/green] Nothing to practice")
        return

    table = Table(title="Practice Set", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Question", style="cyan")
    for idx, key in enumerate(report.practice_questions, 1):
        table.add_row(str(idx), key)
    console.print(table)


def _render_report(report: AnalyticsReport, class_name: str) -> None:
    s = report.summary
    console.print(
        Panel(
            f"Questions: {s.total_questions}  "
            f"Attempted: {s.attempted_questions}  "
            f"Correct: {s.correct_questions}  "
            f"Unanswered: {s.unanswered}\n"
            f"Accuracy: {_pct(s.avg_accuracy)}  "
            f"Avg time: {s.avg_time_seconds:.1f}s",
            title=f"[bold]{class_name}[/bold]",
        )
    )

    if report.skills:
        table = Table(title="Skills", show_header=True)
        table.add_column("Skill", style="cyan")
        table.add_column("Attempted", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Mastery", justify="right")
        table.add_column("Streak", justify="right")
        table.add_column("Fragile")
        for skill in report.skills:
            table.add_row(
                skill.skill,
                f"{skill.attempted_questions}/{skill.total_questions}",
                f"[{_accuracy_style(skill.accuracy)}]{_pct(skill.accuracy)}[/]",
                _pct(skill.mastery),
                str(skill.streak),
                "[red]yes[/red]" if skill.fragile else "",
            )
        console.print(table)

    console.print(_bucket_table("Units", report.units, "Unit"))
    console.print(_bucket_table("Difficulty", report.difficulties, "Difficulty"))
    console.print(_bucket_table("Cognitive Level", report.cognitive, "Level"))

    _render_weak_skills(report)

    if report.strength_skills:
        strengths = ", ".join(
            f"{s.skill} ({_pct(s.accuracy)})" for s in report.strength_skills
        )
        rprint(f"[green]Strengths:[/green] {strengths}")

    _render_practice(report)

    if report.suggestions:
        table = Table(title="Up Next", show_header=True)
        table.add_column("Question", style="cyan")
        table.add_column("Unit")
        table.add_column("Reason", style="yellow")
        for suggestion in report.suggestions:
            table.add_row(suggestion.question_id, suggestion.unit_name, suggestion.reason)
        console.print(table)

    stimulus = report.stimulus_analytics
    if stimulus is not None:
        table = Table(title="Stimulus Questions", show_header=True)
        table.add_column("Group", style="cyan")
        table.add_column("Attempted", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Struggle", justify="right")
        for group in [*stimulus.by_type, *stimulus.by_complexity]:
            table.add_row(
                group.key,
                f"{group.attempted}/{group.count}",
                _pct(group.accuracy),
                f"{group.avg_struggle_score:.2f}",
            )
        console.print(table)


# ========================================
# Commands
# ========================================


@app.command("report")
def report_command(
    user_id: str = typer.Argument(..., help="Learner identifier"),
    class_name: str = typer.Argument(..., help="Class name, e.g. 'AP Biology'"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the question bank cache"),
) -> None:
    """
    Show the full analytics report for a learner in a class.

    Examples:
        practice-analytics report alice "AP Biology"
        practice-analytics report alice "AP Biology" --json
    """
    report = _load_report(user_id, class_name, refresh=refresh)
    if as_json:
        typer.echo(report.model_dump_json(indent=2))
        return
    _render_report(report, class_name)


@app.command("weak-skills")
def weak_skills_command(
    user_id: str = typer.Argument(..., help="Learner identifier"),
    class_name: str = typer.Argument(..., help="Class name"),
) -> None:
    """Show the learner's weakest skills."""
    _render_weak_skills(_load_report(user_id, class_name))


@app.command("practice")
def practice_command(
    user_id: str = typer.Argument(..., help="Learner identifier"),
    class_name: str = typer.Argument(..., help="Class name"),
) -> None:
    """Show the prioritized practice set."""
    _render_practice(_load_report(user_id, class_name))


@app.command("record")
def record_command(
    user_id: str = typer.Argument(..., help="Learner identifier"),
    question_id: str = typer.Argument(..., help="Question id"),
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Answer correctness"),
    time_spent: float = typer.Option(0.0, "--time", "-t", help="Seconds spent on the answer"),
    confidence: Optional[int] = typer.Option(
        None, "--confidence", "-c", min=1, max=5, help="Self-reported confidence (1-5)"
    ),
    option_id: Optional[str] = typer.Option(None, "--option", help="Selected option id"),
    class_name: Optional[str] = typer.Option(
        None, "--class", help="Class to look the question up in (enables stimulus tracking)"
    ),
) -> None:
    """
    Record one answer.

    Examples:
        practice-analytics record alice q-101 --correct --time 32
        practice-analytics record alice q-204 --incorrect --time 140 --class "AP Biology"
    """
    stimulus_meta = None
    if class_name:
        loader = QuestionBankLoader.from_settings()
        question = asyncio.run(loader.get_question_by_id(question_id, [class_name]))
        if question is None:
            rprint(f"[yellow]⚠[/yellow] {question_id} not found in {class_name}")
        else:
            stimulus_meta = question.stimulus_meta

    try:
        with AttemptStore.from_settings() as store:
            attempt = store.record_attempt(
                user_id,
                question_id,
                is_correct=correct,
                time_spent_seconds=time_spent,
                confidence=confidence,
                stimulus_meta=stimulus_meta,
                option_id=option_id,
            )
    except PracticeAnalyticsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    mark = "[green]✓[/green]" if correct else "[red]✗[/red]"
    rprint(
        f"{mark} Recorded {question_id} for {user_id} "
        f"(attempts={attempt.attempts}, streak={attempt.streak})"
    )


@app.command("import-attempts")
def import_attempts_command(
    user_id: str = typer.Argument(..., help="Learner identifier"),
    file: Path = typer.Argument(..., help="JSON file holding a list of attempt records"),
) -> None:
    """
    Import rolled-up attempts from a JSON export.

    The file holds a list of attempt records (camelCase or snake_case keys),
    or an object with an "attempts" list.
    """
    if not file.exists():
        console.print(f"[red]File not found: {file}[/]")
        raise typer.Exit(1)

    try:
        raw = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: invalid JSON in {file}: {e}[/red]")
        raise typer.Exit(1)

    if isinstance(raw, dict):
        raw = raw.get("attempts", [])
    if not isinstance(raw, list):
        console.print("[red]Error: expected a list of attempt records[/red]")
        raise typer.Exit(1)

    attempts = [ensure_attempt_defaults(r) for r in raw if isinstance(r, dict)]
    skipped = [a for a in attempts if not a.question_id]
    attempts = [a for a in attempts if a.question_id]

    with AttemptStore.from_settings() as store:
        saved = store.save_attempts(user_id, attempts)

    rprint(f"[green]✓[/green] Imported {saved} attempts for {user_id}")
    if skipped:
        rprint(f"[yellow]⚠[/yellow] Skipped {len(skipped)} records without a question id")


@app.command("units")
def units_command(
    class_name: str = typer.Argument(..., help="Class name"),
) -> None:
    """List a class's units and subtopics."""
    loader = QuestionBankLoader.from_settings()
    class_data = asyncio.run(loader.load(class_name))
    if class_data is None:
        console.print(f"[red]Error: no question bank available for {class_name!r}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=class_name, show_header=True)
    table.add_column("Unit", style="cyan")
    table.add_column("Subtopic")
    table.add_column("Questions", justify="right", style="green")
    for unit in class_data.units:
        for idx, subtopic in enumerate(unit.subtopics):
            table.add_row(
                unit.unit_name if idx == 0 else "",
                subtopic.subtopic_name,
                str(len(subtopic.questions)),
            )
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    try:
        app()
    except PracticeAnalyticsError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
