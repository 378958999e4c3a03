"""Sustainability quiz generation and grading."""
import json
import logging
from typing import Any, List

from models.llm import ChatMessage, TextReply
from models.quiz import GradeResult, QuestionResult, Quiz, QuizQuestion
from services.quiz_repository import QuizRepository

logger = logging.getLogger(__name__)

ALLOWED_TOPICS = [
    "Waste Management",
    "Carbon Footprint",
    "Responsible Tourism",
    "Eco-Friendly Travel",
    "Biodiversity Conservation",
    "Sustainable Destinations",
    "Community-Based Tourism",
    "Plastic Reduction",
    "Energy Conservation",
    "Cultural Heritage Preservation",
]

QUESTION_COUNT = 10
OPTION_COUNT = 4


class InvalidTopicError(ValueError):
    """Raised when a quiz is requested on a topic outside the allow-list."""

    def __init__(self, topic: str):
        self.topic = topic
        self.allowed_topics = list(ALLOWED_TOPICS)
        super().__init__("Invalid topic. Please choose a valid sustainability topic.")


class QuizGenerationError(Exception):
    """Raised when the model's quiz cannot be parsed or fails validation."""


def build_quiz_prompt(topic: str) -> str:
    return f"""You are a sustainability-focused AI that generates quizzes.
Create a {QUESTION_COUNT}-question multiple-choice quiz about the topic: "{topic}".
Each question must have exactly {OPTION_COUNT} options.
Return only JSON in the format:
{{
  "questions": [
    {{
      "questionText": string,
      "options": string[{OPTION_COUNT}],
      "correctAnswerIndex": number
    }}
  ]
}}"""


def parse_questions(text: str) -> List[QuizQuestion]:
    """
    Parse and validate the model's JSON quiz.

    Raises:
        QuizGenerationError: If the text is not the expected quiz shape
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.startswith("json"):
            cleaned = cleaned[len("json"):]
        cleaned = cleaned.strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise QuizGenerationError(f"Failed to parse quiz data from model response: {e}") from e

    raw_questions = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(raw_questions, list):
        raise QuizGenerationError("Quiz data has no questions list")
    if len(raw_questions) != QUESTION_COUNT:
        raise QuizGenerationError(
            f"Expected {QUESTION_COUNT} questions, got {len(raw_questions)}"
        )

    questions = []
    for position, raw in enumerate(raw_questions):
        questions.append(_validate_question(raw, position))
    return questions


def _validate_question(raw: Any, position: int) -> QuizQuestion:
    if not isinstance(raw, dict):
        raise QuizGenerationError(f"Question {position} is not an object")

    question_text = raw.get("questionText")
    options = raw.get("options")
    answer = raw.get("correctAnswerIndex")

    if not isinstance(question_text, str) or not question_text.strip():
        raise QuizGenerationError(f"Question {position} has no text")
    if (
        not isinstance(options, list)
        or len(options) != OPTION_COUNT
        or not all(isinstance(o, str) for o in options)
    ):
        raise QuizGenerationError(f"Question {position} must have exactly {OPTION_COUNT} text options")
    # bool is an int subclass
    if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < OPTION_COUNT:
        raise QuizGenerationError(f"Question {position} has an invalid correctAnswerIndex")

    return QuizQuestion(question_text=question_text, options=options, correct_answer_index=answer)


def grade_answers(quiz: Quiz, user_answers: List[int]) -> GradeResult:
    """Positional comparison of answers against the stored key."""
    results = []
    for position, question in enumerate(quiz.questions):
        answer = user_answers[position] if position < len(user_answers) else None
        results.append(QuestionResult(
            is_correct=answer == question.correct_answer_index,
            correct_answer_index=question.correct_answer_index
        ))
    score = sum(1 for r in results if r.is_correct)
    return GradeResult(score=score, results=results)


class QuizService:
    """Generate quizzes through a language model and grade submitted answers."""

    def __init__(self, llm_client: Any, repository: QuizRepository):
        self.llm_client = llm_client
        self.repository = repository

    def generate(self, topic: str) -> Quiz:
        """
        Generate, validate and store a quiz on an allowed topic.

        Raises:
            InvalidTopicError: If the topic is not in ALLOWED_TOPICS
            QuizGenerationError: If the model's output is not a valid quiz
            LLMClientError: If the model call fails
        """
        if topic not in ALLOWED_TOPICS:
            logger.warning(f"Rejected quiz topic: {topic!r}")
            raise InvalidTopicError(topic)

        reply = self.llm_client.generate(
            [ChatMessage(role="user", text=f'Generate the quiz on "{topic}".')],
            system_instruction=build_quiz_prompt(topic),
            json_output=True
        )
        if not isinstance(reply, TextReply):
            raise QuizGenerationError("Model returned a tool call instead of quiz JSON")

        questions = parse_questions(reply.text)
        quiz = self.repository.save(topic, questions)
        logger.info(f"Generated quiz {quiz.quiz_id} on {topic!r}")
        return quiz

    def grade(self, quiz_id: str, user_answers: List[int]) -> GradeResult:
        """
        Grade answers against a stored quiz.

        Raises:
            QuizNotFoundError: If the quiz id is unknown
        """
        quiz = self.repository.get(quiz_id)
        result = grade_answers(quiz, user_answers)
        logger.info(f"Graded quiz {quiz_id}: {result.score}/{len(quiz.questions)}")
        return result
