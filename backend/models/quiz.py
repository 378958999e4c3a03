"""Quiz data models."""
from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass
class QuizQuestion:
    """A single multiple-choice question with its answer key."""
    question_text: str
    options: List[str]
    correct_answer_index: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizQuestion":
        return cls(
            question_text=data["questionText"],
            options=list(data["options"]),
            correct_answer_index=data["correctAnswerIndex"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionText": self.question_text,
            "options": self.options,
            "correctAnswerIndex": self.correct_answer_index,
        }


@dataclass
class Quiz:
    """A stored question set."""
    quiz_id: str
    topic: str
    questions: List[QuizQuestion]

    def public_questions(self) -> List[Dict[str, Any]]:
        """Questions as shown to the player, without the answer key."""
        return [
            {"questionText": q.question_text, "options": q.options}
            for q in self.questions
        ]


@dataclass
class QuestionResult:
    """Grading outcome for one question."""
    is_correct: bool
    correct_answer_index: int


@dataclass
class GradeResult:
    """Grading outcome for a whole quiz."""
    score: int
    results: List[QuestionResult]
