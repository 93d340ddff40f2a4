from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class QuizResult:
    question: str
    selected: Optional[int]
    correct: bool
    correct_answer: Optional[str]
    explanation: Optional[str] = None


class QuizSession:
    """Self-graded mini quiz for one lesson plan."""

    def __init__(self, questions: List[Dict[str, Any]]):
        self.questions = list(questions or [])
        self.answers: Dict[int, int] = {}
        self.submitted = False

    def select(self, question_index: int, option_index: int) -> None:
        if not 0 <= question_index < len(self.questions):
            raise IndexError(f"No question {question_index}")
        options = self.questions[question_index].get("options") or []
        if not 0 <= option_index < len(options):
            raise IndexError(f"Question {question_index} has no option {option_index}")
        self.answers[question_index] = option_index

    def submit(self) -> None:
        self.submitted = True

    def reset(self) -> None:
        self.answers = {}
        self.submitted = False

    def results(self) -> List[QuizResult]:
        """Graded answers; empty until the quiz has been submitted."""
        if not self.submitted:
            return []

        results = []
        for index, q in enumerate(self.questions):
            options = q.get("options") or []
            correct_index = q.get("correctAnswer")
            valid = (
                isinstance(correct_index, int)
                and not isinstance(correct_index, bool)
                and 0 <= correct_index < len(options)
            )
            selected = self.answers.get(index)
            results.append(
                QuizResult(
                    question=q.get("question", ""),
                    selected=selected,
                    correct=valid and selected == correct_index,
                    correct_answer=options[correct_index] if valid else None,
                    explanation=q.get("explanation"),
                )
            )
        return results

    @property
    def score(self) -> int:
        return sum(1 for r in self.results() if r.correct)
