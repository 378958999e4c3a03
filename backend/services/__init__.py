"""Services for EcoLakbay AI endpoints."""
from .llm_client import LLMError, LLMClientError
from .gemini_client import GeminiClient
from .groq_client import GroqClient
from .geocoder import Geocoder, maps_link
from .chat_orchestrator import ChatOrchestrator
from .quiz_repository import QuizRepository, QuizNotFoundError
from .quiz_service import QuizService, InvalidTopicError, QuizGenerationError, ALLOWED_TOPICS
from .trip_planner import TripPlanner, TripPlanError
from .carbon_calculator import calculate, CarbonEstimate, EMISSION_FACTORS

__all__ = ['LLMError', 'LLMClientError', 'GeminiClient', 'GroqClient', 'Geocoder', 'maps_link', 'ChatOrchestrator', 'QuizRepository', 'QuizNotFoundError', 'QuizService', 'InvalidTopicError', 'QuizGenerationError', 'ALLOWED_TOPICS', 'TripPlanner', 'TripPlanError', 'calculate', 'CarbonEstimate', 'EMISSION_FACTORS']
