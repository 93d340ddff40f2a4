import calendar
from datetime import date
from typing import Any, Dict, List, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .quiz import QuizResult, QuizSession
from .store import LessonPlanStore

WEEKDAY_HEADERS = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]


def months_spanned(days: List[date]) -> List[tuple]:
    return sorted({(d.year, d.month) for d in days})


def month_table(
    store: LessonPlanStore,
    year: int,
    month: int,
    selected: Optional[date] = None,
) -> Table:
    """One month grid; days with a lesson plan are highlighted."""
    table = Table(
        title=f"{calendar.month_name[month]} {year}",
        show_lines=False,
        padding=(0, 1),
    )
    for header in WEEKDAY_HEADERS:
        table.add_column(header, justify="right")

    for week in calendar.Calendar().monthdatescalendar(year, month):
        cells = []
        for day in week:
            if day.month != month:
                cells.append(Text(""))
                continue
            style = ""
            if store.has_plan(day):
                style = "bold green"
            if selected is not None and day == selected:
                style = "reverse " + (style or "bold")
            cells.append(Text(str(day.day), style=style))
        table.add_row(*cells)
    return table


def render_calendar(console: Console, store: LessonPlanStore, selected: Optional[date] = None) -> None:
    days = store.dates()
    if not days:
        console.print("[yellow]No dated lesson plans to show.[/yellow]")
        return
    for year, month in months_spanned(days):
        console.print(month_table(store, year, month, selected))
    console.print(Text("■ Days with lesson plans", style="bold green"))


def _bullets(items: List[str], numbered: bool = False) -> Text:
    text = Text()
    for i, item in enumerate(items or [], 1):
        prefix = f"{i}. " if numbered else "• "
        text.append(prefix + str(item) + "\n")
    return text


def render_quiz_questions(quiz: QuizSession) -> Text:
    text = Text()
    for qi, q in enumerate(quiz.questions):
        text.append(f"{qi + 1}. {q.get('question', '')}\n", style="bold")
        for oi, option in enumerate(q.get("options") or []):
            marker = "(x)" if quiz.answers.get(qi) == oi else "( )"
            text.append(f"   {marker} {oi + 1}) {option}\n")
    return text


def render_quiz_results(results: List[QuizResult]) -> Text:
    text = Text()
    for i, r in enumerate(results, 1):
        text.append(f"{i}. {r.question}\n", style="bold")
        if r.correct:
            text.append("   ✓ Correct!\n", style="green")
        else:
            text.append("   ✗ Incorrect\n", style="red")
        answer = r.correct_answer if r.correct_answer is not None else "unavailable"
        text.append(f"   Correct answer: {answer}\n")
        if r.explanation:
            text.append(f"   {r.explanation}\n", style="italic")
    score = sum(1 for r in results if r.correct)
    text.append(f"\nScore: {score}/{len(results)}\n", style="bold")
    return text


def render_lesson_plan(console: Console, plan: Dict[str, Any], quiz: Optional[QuizSession] = None) -> None:
    header = Text()
    header.append(f"📅 {plan.get('date', '')}   ")
    header.append(f"⏱️ {plan.get('duration', '')}   ")
    header.append(f"📖 {plan.get('chapter', '')}")

    quiz = quiz or QuizSession(plan.get("miniQuiz") or [])
    quiz_body = render_quiz_results(quiz.results()) if quiz.submitted else render_quiz_questions(quiz)

    standards = Text()
    for standard in plan.get("standards") or []:
        standards.append(f" {standard} ", style="black on magenta")
        standards.append(" ")

    body = Group(
        header,
        Text("\n📝 Student Notes", style="bold blue"),
        _bullets(plan.get("notes") or []),
        Text("❓ Review Questions", style="bold blue"),
        _bullets(plan.get("reviewQuestions") or [], numbered=True),
        Text("🧠 Mini Quiz", style="bold blue"),
        quiz_body,
        Text("📋 Standards", style="bold blue"),
        standards,
    )
    console.print(Panel(body, title=plan.get("title", "Lesson plan"), expand=False))
