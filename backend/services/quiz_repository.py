"""Quiz storage in the Supabase `quizzes` table."""
import logging
from typing import List, Optional
from supabase import create_client, Client

from config import SUPABASE_URL, SUPABASE_KEY, ConfigurationError
from models.quiz import Quiz, QuizQuestion

logger = logging.getLogger(__name__)


class QuizNotFoundError(Exception):
    """Raised when a quiz id has no stored question set."""

    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f"Quiz not found: {quiz_id}")


class QuizRepository:
    """Persist generated question sets, answer key included, keyed by quiz id."""

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        table_name: str = "quizzes"
    ):
        """
        Initialize the repository with a Supabase client.

        Args:
            supabase_url: Supabase project URL (defaults to SUPABASE_URL)
            supabase_key: Supabase API key (defaults to SUPABASE_KEY)
            table_name: Table holding id, topic and questions columns

        Raises:
            ConfigurationError: If Supabase credentials are missing
        """
        supabase_url = supabase_url or SUPABASE_URL
        supabase_key = supabase_key or SUPABASE_KEY
        if not supabase_url or not supabase_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY environment variables are required")

        self.table_name = table_name
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"Initialized QuizRepository with table: {table_name}")

    def save(self, topic: str, questions: List[QuizQuestion]) -> Quiz:
        """
        Insert a question set and return it with its generated id.

        Raises:
            RuntimeError: If the insert fails or returns no row
        """
        try:
            result = self.client.table(self.table_name).insert({
                "topic": topic,
                "questions": [q.to_dict() for q in questions]
            }).execute()
        except Exception as e:
            error_msg = f"Failed to save quiz: {str(e)}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        if not result.data:
            raise RuntimeError("Failed to save quiz: insert returned no row")

        row = result.data[0]
        quiz = self._to_quiz(row, fallback_topic=topic)
        logger.info(f"Saved quiz {quiz.quiz_id} on {topic!r} with {len(quiz.questions)} questions")
        return quiz

    def get(self, quiz_id: str) -> Quiz:
        """
        Fetch a stored question set.

        Raises:
            QuizNotFoundError: If no row has this id
            RuntimeError: If the query fails
        """
        try:
            result = (
                self.client.table(self.table_name)
                .select("id, topic, questions")
                .eq("id", quiz_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            error_msg = f"Failed to fetch quiz {quiz_id}: {str(e)}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        if not result.data:
            logger.warning(f"Quiz {quiz_id} not found")
            raise QuizNotFoundError(quiz_id)

        return self._to_quiz(result.data[0])

    @staticmethod
    def _to_quiz(row: dict, fallback_topic: str = "") -> Quiz:
        return Quiz(
            quiz_id=str(row["id"]),
            topic=row.get("topic") or fallback_topic,
            questions=[QuizQuestion.from_dict(q) for q in row.get("questions") or []]
        )
