"""
Command line interface for the lesson plan generator.

`serve` runs the FastAPI backend; `generate` uploads a textbook PDF to a
running backend and opens an interactive calendar / quiz view of the result.
"""

import itertools
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.prompt import IntPrompt, Prompt

from .. import config
from .api import GenerationFailed, LessonPlanApi
from .quiz import QuizSession
from .render import render_calendar, render_lesson_plan
from .store import LessonPlanStore, Phase

cli = typer.Typer(
    name="lesson-planner",
    help="Turn a textbook PDF into a calendar of AI-generated lesson plans",
    add_completion=False,
)
console = Console()

PROGRESS_CAPTIONS = [
    "Uploading PDF and starting analysis...",
    "Extracting key pages from PDF...",
    "Processing AI response...",
]


class Duration(str, Enum):
    week = "7"
    two_weeks = "14"
    month = "30"


def validate_pdf_path(path: Path) -> Path:
    if path.suffix.lower() != ".pdf":
        raise typer.BadParameter("Please choose a PDF file (.pdf)")
    return path


@cli.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host to bind to"),
    port: int = typer.Option(8000, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
    log_level: str = typer.Option(config.LOG_LEVEL.lower(), help="Log level"),
):
    """Start the lesson plan backend"""
    console.print(f"🚀 Starting Lesson Plan Generator on {host}:{port}", style="green")
    uvicorn.run(
        "lesson_planner.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


@cli.command()
def health(
    api_url: Optional[str] = typer.Option(None, help="Backend base URL"),
):
    """Check that the backend is reachable"""
    api = LessonPlanApi(api_url)
    try:
        info = api.health()
    except Exception as e:
        console.print(f"❌ Backend not reachable: {e}", style="red")
        raise typer.Exit(code=1)
    console.print(f"✅ {info.get('message', info)}", style="green")


def run_with_progress(api: LessonPlanApi, pdf: Path, duration: int, prompt: str):
    """Block on the request while cycling through cosmetic progress captions."""
    captions = itertools.cycle(PROGRESS_CAPTIONS)
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(api.generate, str(pdf), duration, prompt)
        with console.status(next(captions)) as status:
            while True:
                try:
                    return future.result(timeout=4)
                except FutureTimeout:
                    status.update(next(captions))


def take_quiz(quiz: QuizSession) -> None:
    for qi, q in enumerate(quiz.questions):
        options = q.get("options") or []
        if not options:
            continue
        console.print(f"[bold]{qi + 1}. {q.get('question', '')}[/bold]")
        for oi, option in enumerate(options):
            console.print(f"   {oi + 1}) {option}")
        choice = IntPrompt.ask(
            "Your answer",
            choices=[str(i + 1) for i in range(len(options))],
        )
        quiz.select(qi, choice - 1)
    quiz.submit()


def show_day(store: LessonPlanStore, day: date) -> None:
    plan = store.plan_for(day)
    if plan is None:
        console.print("Select a highlighted date to view its lesson plan.", style="yellow")
        return

    quiz = QuizSession(plan.get("miniQuiz") or [])
    render_lesson_plan(console, plan, quiz)
    while True:
        action = Prompt.ask(
            "[q]uiz, [r]etake, [b]ack to calendar",
            choices=["q", "r", "b"],
            default="b",
        )
        if action == "b":
            return
        if action == "r":
            quiz.reset()
        take_quiz(quiz)
        render_lesson_plan(console, plan, quiz)


def browse_results(api: LessonPlanApi, store: LessonPlanStore) -> None:
    days = store.dates()
    selected: Optional[date] = None
    while store.phase == Phase.SHOWING_RESULTS:
        render_calendar(console, store, selected)
        answer = Prompt.ask(
            "Date (YYYY-MM-DD), [g]oogle sync, [u]pload another, [x] quit",
            default=days[0].isoformat() if days else "x",
        )
        if answer == "x":
            raise typer.Exit()
        if answer == "u":
            store.clear()
            return
        if answer == "g":
            try:
                result = api.sync_to_google(store.plans)
            except GenerationFailed as e:
                console.print(f"❌ Google Calendar sync failed: {e.message}", style="red")
                continue
            synced = result.get("synced", [])
            console.print(f"📅 Synced {len(synced)} lesson plans to Google Calendar", style="green")
            continue
        try:
            selected = date.fromisoformat(answer)
        except ValueError:
            console.print("Please enter a date as YYYY-MM-DD.", style="yellow")
            continue
        show_day(store, selected)


def ask_for_upload(pdf: Path, duration: Duration, prompt: str):
    """Prompt for the upload inputs again, keeping the previous values as defaults."""
    while True:
        answer = Prompt.ask("PDF file ([x] to quit)", default=str(pdf))
        if answer == "x":
            raise typer.Exit()
        pdf = Path(answer)
        if pdf.suffix.lower() == ".pdf" and pdf.is_file():
            break
        console.print(f"❌ PDF file not found at: {pdf}", style="red")
    duration = Duration(
        Prompt.ask("Duration (days)", choices=[d.value for d in Duration], default=duration.value)
    )
    prompt = Prompt.ask("Additional instructions", default=prompt)
    return pdf, duration, prompt


@cli.command()
def generate(
    pdf: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        callback=validate_pdf_path,
        help="Textbook PDF",
    ),
    duration: Duration = typer.Option(Duration.week, help="Lesson plan duration in days"),
    prompt: str = typer.Option("", help="Additional instructions for the lesson plans"),
    api_url: Optional[str] = typer.Option(None, help="Backend base URL"),
):
    """Generate lesson plans from a textbook PDF and browse them"""
    api = LessonPlanApi(api_url)
    store = LessonPlanStore()
    interactive = False

    while True:
        try:
            plans = run_with_progress(api, pdf, int(duration.value), prompt)
        except GenerationFailed as e:
            console.print(f"❌ Failed to generate lesson plan: {e.message}", style="red")
            # Only the one-shot command line run exits; later failures go back to upload
            if not interactive:
                raise typer.Exit(code=1)
        else:
            store.load(plans)
            console.print(f"✅ Generated {len(store)} lesson plans", style="green")
            browse_results(api, store)

        interactive = True
        pdf, duration, prompt = ask_for_upload(pdf, duration, prompt)


def main():
    cli()


if __name__ == "__main__":
    main()
