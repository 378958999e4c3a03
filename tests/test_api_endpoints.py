"""Integration tests for the HTTP endpoints."""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))


@pytest.fixture
def client():
    """Create a test client with mocked services."""
    # Import after path is set
    from main import app
    import main

    # Mock the startup event to avoid initializing real services
    with patch('main.startup_event'):
        client = TestClient(app)

        # Manually set the global services to mocks
        main.chat_orchestrator = Mock()
        main.quiz_service = Mock()
        main.trip_planner = Mock()

        yield client

    main.chat_orchestrator = None
    main.quiz_service = None
    main.trip_planner = None


def make_quiz():
    from models.quiz import Quiz, QuizQuestion
    return Quiz(
        quiz_id="quiz-123",
        topic="Waste Management",
        questions=[
            QuizQuestion(question_text=f"Q{i}?", options=["A", "B", "C", "D"], correct_answer_index=i % 4)
            for i in range(10)
        ]
    )


class TestHealthEndpoints:
    """Test health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_lists_services(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"] == {"chat": True, "quiz": True, "trip_plan": True}


class TestCors:
    """Test the CORS allow-list."""

    def test_preflight_from_allowed_origin(self, client):
        """Allowed origins are echoed back."""
        response = client.options("/chat", headers={
            "Origin": "https://eco-lakbay.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type"
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://eco-lakbay.com"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_preflight_from_disallowed_origin(self, client):
        """Origins outside the allow-list get no CORS grant."""
        response = client.options("/chat", headers={
            "Origin": "https://evil.example",
            "Access-Control-Request-Method": "POST"
        })

        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers


class TestChatEndpoint:
    """Test POST /chat."""

    def test_chat_success(self, client):
        """Test a reply is returned and history is passed through."""
        import main
        main.chat_orchestrator.reply.return_value = "Visit the Clark Parade Grounds!"

        response = client.post("/chat", json={
            "message": "What can I do in Clark?",
            "history": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello! How can I help?"}
            ]
        })

        assert response.status_code == 200
        assert response.json() == {"reply": "Visit the Clark Parade Grounds!"}

        context = main.chat_orchestrator.reply.call_args.args[0]
        assert context.message == "What can I do in Clark?"
        assert [(t.role, t.content) for t in context.history] == [
            ("user", "Hi"),
            ("assistant", "Hello! How can I help?")
        ]

    def test_chat_history_optional(self, client):
        import main
        main.chat_orchestrator.reply.return_value = "Hello!"

        response = client.post("/chat", json={"message": "Hi"})

        assert response.status_code == 200
        assert main.chat_orchestrator.reply.call_args.args[0].history == []

    def test_chat_empty_message(self, client):
        """Test empty messages are rejected."""
        response = client.post("/chat", json={"message": ""})
        assert response.status_code == 422
        assert "error" in response.json()

    def test_chat_missing_message(self, client):
        response = client.post("/chat", json={"history": []})
        assert response.status_code == 422
        assert "message" in response.json()["error"]

    def test_chat_upstream_error(self, client):
        """Test model failures surface as 502 with the error message."""
        import main
        from services.llm_client import LLMClientError, LLMError
        main.chat_orchestrator.reply.side_effect = LLMClientError(
            LLMError(code="API_ERROR", message="Gemini API error: 500 - boom", details={})
        )

        response = client.post("/chat", json={"message": "Hi"})

        assert response.status_code == 502
        assert response.json() == {"error": "Gemini API error: 500 - boom"}

    def test_chat_unconfigured_makes_no_outbound_call(self, client):
        """Test a missing service fails with an error body and no upstream request."""
        import main
        main.chat_orchestrator = None

        with patch('services.gemini_client.httpx') as gemini_httpx, \
                patch('services.geocoder.httpx') as geocoder_httpx:
            response = client.post("/chat", json={"message": "Where is Mount Arayat?"})

        assert response.status_code == 500
        assert "not configured" in response.json()["error"]
        gemini_httpx.Client.assert_not_called()
        geocoder_httpx.Client.assert_not_called()


class TestQuizEndpoint:
    """Test POST /quiz."""

    def test_generate(self, client):
        """Test generated questions are returned without the answer key."""
        import main
        main.quiz_service.generate.return_value = make_quiz()

        response = client.post("/quiz", json={"action": "generate", "topic": "Waste Management"})

        assert response.status_code == 200
        data = response.json()
        assert data["quizId"] == "quiz-123"
        assert len(data["questions"]) == 10
        for question in data["questions"]:
            assert set(question) == {"questionText", "options"}
        main.quiz_service.generate.assert_called_once_with("Waste Management")

    def test_generate_invalid_topic(self, client):
        """Test off-list topics return 400 with the allowed topics."""
        import main
        from services.quiz_service import InvalidTopicError, ALLOWED_TOPICS
        main.quiz_service.generate.side_effect = InvalidTopicError("Cryptocurrency")

        response = client.post("/quiz", json={"action": "generate", "topic": "Cryptocurrency"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid topic. Please choose a valid sustainability topic."
        assert data["allowedTopics"] == ALLOWED_TOPICS

    def test_generate_missing_topic(self, client):
        response = client.post("/quiz", json={"action": "generate"})
        assert response.status_code == 400
        assert response.json()["error"] == "Topic is required to generate a quiz."

    def test_generate_bad_model_output(self, client):
        import main
        from services.quiz_service import QuizGenerationError
        main.quiz_service.generate.side_effect = QuizGenerationError("Expected 10 questions, got 3")

        response = client.post("/quiz", json={"action": "generate", "topic": "Waste Management"})

        assert response.status_code == 502

    def test_grade(self, client):
        """Test grading returns the score and per-question results."""
        import main
        from models.quiz import GradeResult, QuestionResult
        main.quiz_service.grade.return_value = GradeResult(
            score=1,
            results=[
                QuestionResult(is_correct=True, correct_answer_index=0),
                QuestionResult(is_correct=False, correct_answer_index=2)
            ]
        )

        response = client.post("/quiz", json={"action": "grade", "quizId": "quiz-123", "userAnswers": [0, 1]})

        assert response.status_code == 200
        assert response.json() == {
            "score": 1,
            "results": [
                {"isCorrect": True, "correctAnswerIndex": 0},
                {"isCorrect": False, "correctAnswerIndex": 2}
            ]
        }
        main.quiz_service.grade.assert_called_once_with("quiz-123", [0, 1])

    def test_grade_unknown_quiz(self, client):
        import main
        from services.quiz_repository import QuizNotFoundError
        main.quiz_service.grade.side_effect = QuizNotFoundError("nope")

        response = client.post("/quiz", json={"action": "grade", "quizId": "nope", "userAnswers": [0]})

        assert response.status_code == 404
        assert response.json()["error"] == "Quiz not found: nope"

    def test_grade_missing_fields(self, client):
        response = client.post("/quiz", json={"action": "grade", "quizId": "quiz-123"})
        assert response.status_code == 400
        assert response.json()["error"] == "quizId and userAnswers are required."

    def test_grade_null_answer_rejected(self, client):
        """Unanswered questions cannot be submitted."""
        import main
        response = client.post("/quiz", json={"action": "grade", "quizId": "quiz-123", "userAnswers": [0, None]})

        assert response.status_code == 422
        assert "userAnswers" in response.json()["error"]
        main.quiz_service.grade.assert_not_called()

    def test_invalid_action(self, client):
        response = client.post("/quiz", json={"action": "delete"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid action."


class TestTripPlanEndpoint:
    """Test POST /trip-plan."""

    PAYLOAD = {
        "startingPoint": "Clark Freeport Zone",
        "duration": "2 days",
        "groupSize": 2,
        "travelStyle": "Budget",
        "interests": ["Nature", "Food"]
    }

    def test_trip_plan(self, client):
        import main
        main.trip_planner.plan.return_value = "# Day 1: Clark"

        response = client.post("/trip-plan", json=self.PAYLOAD)

        assert response.status_code == 200
        assert response.json() == {"tripPlan": "# Day 1: Clark"}
        preferences = main.trip_planner.plan.call_args.args[0]
        assert preferences.starting_point == "Clark Freeport Zone"
        assert preferences.group_size == 2
        assert preferences.interests == ["Nature", "Food"]

    def test_trip_plan_blocked(self, client):
        import main
        from services.trip_planner import TripPlanError, BLOCKED_MESSAGE
        main.trip_planner.plan.side_effect = TripPlanError(BLOCKED_MESSAGE)

        response = client.post("/trip-plan", json=self.PAYLOAD)

        assert response.status_code == 502
        assert response.json() == {"error": BLOCKED_MESSAGE}

    def test_trip_plan_validation(self, client):
        payload = dict(self.PAYLOAD, interests=[])
        response = client.post("/trip-plan", json=payload)
        assert response.status_code == 422

    def test_trip_plan_unconfigured(self, client):
        import main
        main.trip_planner = None

        response = client.post("/trip-plan", json=self.PAYLOAD)

        assert response.status_code == 500
        assert "error" in response.json()


class TestCarbonEndpoint:
    """Test POST /carbon/calculate."""

    def test_calculate(self, client):
        response = client.post("/carbon/calculate", json={"transportation": "car", "distance": 100})

        assert response.status_code == 200
        assert response.json() == {
            "transportation": "car",
            "distanceKm": 100.0,
            "factor": 0.17,
            "totalKg": 17.0,
            "zeroEmission": False
        }

    def test_negative_distance(self, client):
        response = client.post("/carbon/calculate", json={"transportation": "car", "distance": -5})
        assert response.status_code == 422
