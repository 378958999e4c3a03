"""Main entry point for the EcoLakbay AI services API."""
import logging
from typing import Any, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import (
    PORT,
    LOG_LEVEL,
    LOG_FORMAT,
    CORS_ORIGINS,
    LLM_PROVIDER,
    CHAT_MODEL,
    QUIZ_MODEL,
    TRIP_PLAN_MODEL,
    MAX_HISTORY_TURNS,
    ConfigurationError,
    validate_configuration,
)
from logger import setup_logging
from models.api import (
    ChatRequest,
    ChatResponse,
    QuizRequest,
    QuizGenerateResponse,
    QuizGradeResponse,
    TripPlanRequest,
    TripPlanResponse,
    CarbonRequest,
    CarbonResponse,
)
from models.conversation import ConversationContext, Turn
from models.trip import TripPreferences
from services.llm_client import LLMClientError
from services.gemini_client import GeminiClient
from services.groq_client import GroqClient
from services.geocoder import Geocoder
from services.chat_orchestrator import ChatOrchestrator
from services.quiz_repository import QuizRepository, QuizNotFoundError
from services.quiz_service import QuizService, InvalidTopicError, QuizGenerationError
from services.trip_planner import TripPlanner, TripPlanError
from services import carbon_calculator

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="EcoLakbay AI Services",
    description="Chat assistant, quiz and trip planner for sustainable tourism in Pampanga",
    version="1.0.0"
)

# Configure CORS; only allow-listed origins are reflected
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Initialize services (will be done on startup)
chat_orchestrator: Optional[ChatOrchestrator] = None
quiz_service: Optional[QuizService] = None
trip_planner: Optional[TripPlanner] = None


def build_llm_client(model: str, provider: str = LLM_PROVIDER) -> Any:
    """Language model client for the configured provider."""
    if provider == "groq":
        return GroqClient()
    return GeminiClient(model=model)


@app.on_event("startup")
async def startup_event():
    """Validate configuration and initialize services on startup."""
    global chat_orchestrator, quiz_service, trip_planner

    setup_logging(LOG_LEVEL, LOG_FORMAT)
    logger.info(f"Initializing EcoLakbay AI services (provider: {LLM_PROVIDER})...")

    try:
        validate_configuration(LLM_PROVIDER)

        geocoder = Geocoder()
        chat_orchestrator = ChatOrchestrator(
            build_llm_client(CHAT_MODEL),
            geocoder,
            max_history_turns=MAX_HISTORY_TURNS
        )
        logger.info("Initialized ChatOrchestrator")

        quiz_service = QuizService(build_llm_client(QUIZ_MODEL), QuizRepository())
        logger.info("Initialized QuizService")

        trip_planner = TripPlanner(build_llm_client(TRIP_PLAN_MODEL))
        logger.info("Initialized TripPlanner")

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """JSON error body shared by every endpoint."""
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def handle_error(e: Exception, endpoint: str) -> JSONResponse:
    """Log an endpoint failure and map it to a status code."""
    if isinstance(e, InvalidTopicError):
        logger.warning(f"{endpoint}: {e} (topic={e.topic!r})")
        return error_response(400, str(e), allowedTopics=e.allowed_topics)
    if isinstance(e, QuizNotFoundError):
        logger.warning(f"{endpoint}: {e}")
        return error_response(404, str(e))
    if isinstance(e, ConfigurationError):
        logger.error(f"{endpoint}: configuration error: {e}")
        return error_response(500, str(e))
    if isinstance(e, LLMClientError):
        logger.error(f"{endpoint}: LLM client error: {e.error.code} {e.error.message}")
        return error_response(502, e.error.message)
    if isinstance(e, (QuizGenerationError, TripPlanError)):
        logger.error(f"{endpoint}: {e}")
        return error_response(502, str(e))
    if isinstance(e, ValueError):
        logger.warning(f"{endpoint}: bad request: {e}")
        return error_response(400, str(e))

    logger.error(f"Unexpected error in {endpoint}: {e}", exc_info=True)
    return error_response(500, str(e) or "Internal server error")


def require(service: Any, name: str) -> Any:
    """Fail before any outbound call when a service was never built."""
    if service is None:
        raise ConfigurationError(f"The {name} service is not configured")
    return service


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures in the shared error shape."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    logger.warning(f"Validation error on {request.url.path}: {messages}")
    return error_response(422, "; ".join(messages) or "Invalid request body")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "EcoLakbay AI Services API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "ecolakbay-ai-services",
        "version": "1.0.0",
        "services": {
            "chat": chat_orchestrator is not None,
            "quiz": quiz_service is not None,
            "trip_plan": trip_planner is not None,
        }
    }


@app.post("/chat", response_model=ChatResponse)
def chat_endpoint(request: ChatRequest):
    """
    Chat assistant endpoint.

    Sends the message and the client's trailing history through the
    two-pass tool-use protocol and returns a single reply.
    """
    try:
        orchestrator = require(chat_orchestrator, "chat")
        context = ConversationContext(
            message=request.message,
            history=[Turn(role=turn.role, content=turn.content) for turn in request.history]
        )
        reply = orchestrator.reply(context)
        return ChatResponse(reply=reply)
    except Exception as e:
        return handle_error(e, "chat")


@app.post("/quiz")
def quiz_endpoint(request: QuizRequest):
    """
    Quiz endpoint.

    `{"action": "generate", "topic": ...}` returns questions without the
    answer key; `{"action": "grade", "quizId": ..., "userAnswers": [...]}`
    returns the score and per-question results.
    """
    try:
        service = require(quiz_service, "quiz")

        if request.action == "generate":
            if not request.topic:
                return error_response(400, "Topic is required to generate a quiz.")
            quiz = service.generate(request.topic)
            return QuizGenerateResponse(quiz_id=quiz.quiz_id, questions=quiz.public_questions())

        if request.action == "grade":
            if not request.quiz_id or request.user_answers is None:
                return error_response(400, "quizId and userAnswers are required.")
            result = service.grade(request.quiz_id, request.user_answers)
            return QuizGradeResponse(
                score=result.score,
                results=[
                    {"is_correct": r.is_correct, "correct_answer_index": r.correct_answer_index}
                    for r in result.results
                ]
            )

        return error_response(400, "Invalid action.")
    except Exception as e:
        return handle_error(e, "quiz")


@app.post("/trip-plan", response_model=TripPlanResponse)
def trip_plan_endpoint(request: TripPlanRequest):
    """Generate a markdown, day-by-day sustainable itinerary."""
    try:
        planner = require(trip_planner, "trip planner")
        preferences = TripPreferences(
            starting_point=request.starting_point,
            duration=request.duration,
            group_size=request.group_size,
            travel_style=request.travel_style,
            interests=request.interests
        )
        return TripPlanResponse(trip_plan=planner.plan(preferences))
    except Exception as e:
        return handle_error(e, "trip-plan")


@app.post("/carbon/calculate", response_model=CarbonResponse)
def carbon_endpoint(request: CarbonRequest):
    """Estimate trip emissions from transport mode and distance."""
    try:
        estimate = carbon_calculator.calculate(request.transportation, request.distance)
        return CarbonResponse(
            transportation=estimate.transportation,
            distance_km=estimate.distance_km,
            factor=estimate.factor,
            total_kg=estimate.total_kg,
            zero_emission=estimate.zero_emission
        )
    except Exception as e:
        return handle_error(e, "carbon")


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting EcoLakbay AI Services API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
