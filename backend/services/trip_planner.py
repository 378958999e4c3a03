"""Sustainable itinerary generation for Pampanga."""
import logging
from typing import Any

from models.llm import ChatMessage, TextReply
from models.trip import TripPreferences
from services.llm_client import LLMClientError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert travel planner for EcoLakbay, a platform focused on sustainable tourism in Pampanga, Philippines. Your goal is to generate a personalized, day-by-day travel itinerary based on the user's preferences.

**Instructions:**
1.  **Prioritize the Starting Point:** The entire itinerary MUST begin from, and logically flow around, the user's specified starting point. All travel times should consider this.
2.  **Be Specific:** Mention real places, eco-lodges, local restaurants, and sustainable activities available in Pampanga.
3.  **Promote Sustainability:** Weave in eco-friendly tips.
4.  **Format with Markdown:** Use headings (e.g., "# Day 1: ..."), bold text, and bullet points.
5.  **Be Friendly and Engaging:** Write in a welcoming and inspiring tone."""

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

TEMPERATURE = 1.0
MAX_OUTPUT_TOKENS = 8192

BLOCKED_MESSAGE = "The request was blocked by the AI's safety filters. Please try rephrasing your interests."
EMPTY_PLAN_MESSAGE = "The AI returned an empty plan. Please try again."


class TripPlanError(Exception):
    """Raised when the model produced no usable itinerary."""


def build_user_prompt(preferences: TripPreferences) -> str:
    return f"""Please create a sustainable travel plan for me in Pampanga, Philippines with the following preferences:

- **My Starting Point/Accommodation:** {preferences.starting_point}
- **Trip Duration:** {preferences.duration}
- **Group Size:** {preferences.group_size} person(s)
- **My Travel Style:** {preferences.travel_style}
- **My Interests:** {', '.join(preferences.interests)}

Please structure the response as a clear, day-by-day itinerary that is easy to follow."""


class TripPlanner:
    """Turn trip preferences into a markdown itinerary."""

    def __init__(self, llm_client: Any):
        self.llm_client = llm_client

    def plan(self, preferences: TripPreferences) -> str:
        """
        Generate an itinerary.

        Raises:
            TripPlanError: If the response was blocked or empty
            LLMClientError: If the model call fails for any other reason
        """
        logger.info(
            f"Planning trip: start={preferences.starting_point!r}, duration={preferences.duration!r}, "
            f"group={preferences.group_size}, interests={len(preferences.interests)}"
        )
        try:
            reply = self.llm_client.generate(
                [ChatMessage(role="user", text=build_user_prompt(preferences))],
                system_instruction=SYSTEM_PROMPT,
                temperature=TEMPERATURE,
                max_output_tokens=MAX_OUTPUT_TOKENS,
                safety_settings=SAFETY_SETTINGS
            )
        except LLMClientError as e:
            if e.error.code == "BLOCKED_RESPONSE":
                raise TripPlanError(BLOCKED_MESSAGE) from e
            if e.error.code == "INVALID_RESPONSE":
                raise TripPlanError(EMPTY_PLAN_MESSAGE) from e
            raise

        if not isinstance(reply, TextReply) or not reply.text.strip():
            raise TripPlanError(EMPTY_PLAN_MESSAGE)

        logger.info(f"Generated trip plan with {len(reply.text)} chars")
        return reply.text
