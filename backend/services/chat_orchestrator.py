"""
Chat assistant orchestration for EcoLakbay.

One reply per user message, optionally grounded with a real address:

1. The model sees the conversation plus one declared tool, get_location_info.
2. If it answers with text, that text is the reply.
3. If it asks for the tool, the place is geocoded inside Pampanga and the
   result goes back to the model on a second call that has no tools, so it
   can only summarise. A map link built from the coordinates is appended
   when the place was found, a not-found note when it was not.
"""

import time
import logging
from typing import Any, Optional

from config import MAX_HISTORY_TURNS
from models.conversation import ConversationContext
from models.llm import FunctionDeclaration, TextReply, ToolCallReply, tool_call_message, tool_result_message
from models.location import LocationFound, LocationNotFound, ToolResult
from services.geocoder import Geocoder, maps_link
from services.llm_client import invalid_response

logger = logging.getLogger(__name__)

LOCATION_TOOL_NAME = "get_location_info"

LOCATION_TOOL = FunctionDeclaration(
    name=LOCATION_TOOL_NAME,
    description=(
        "Get factual information, including the address and coordinates, for a "
        "specific place. Use this whenever a user asks about a location."
    ),
    parameters={
        "type": "object",
        "properties": {
            "place_name": {"type": "string"}
        },
        "required": ["place_name"]
    }
)

REFUSAL_TEXT = (
    "I'm an expert on sustainable travel in Pampanga! I can't help with that, "
    "but I'd be happy to tell you about a beautiful eco-park or a local farm in the area."
)

SYSTEM_INSTRUCTION = f"""---
ROLE & PERSONA:
You are a specialized assistant for EcoLakbay, a sustainable tourism platform. Your ONLY purpose is to discuss and promote sustainable travel within the province of Pampanga, Philippines. You are friendly, positive, and an expert on Pampanga's eco-tourism.

---
STRICT BOUNDARIES (MANDATORY RULES):
1.  **SCOPE:** You MUST ONLY answer questions related to Pampanga, sustainable tourism, eco-friendly activities, and the EcoLakbay platform.
2.  **REFUSAL:** If a user asks a question outside this scope (e.g., about other provinces like Baguio/Cebu, general knowledge, math, coding, or off-topic chat), you MUST politely refuse. A good refusal is: "{REFUSAL_TEXT}" Do NOT apologize for your limitations.
3.  **GEOGRAPHIC CONSTRAINT:** ALL of your recommendations for destinations, food, or activities MUST be located within Pampanga. If a user asks about a place outside Pampanga, gently redirect them back to a similar experience within Pampanga.

---
TOOL USAGE RULE:
When a user asks for a specific location, directions, or "where is" a place *within Pampanga*, you MUST use the "{LOCATION_TOOL_NAME}" function to get the real, factual address. DO NOT invent addresses.
"""

GROUNDING_INSTRUCTION = (
    "You are a helpful assistant. A user asked about a location, and you have received "
    "factual data from a tool. Formulate a friendly, conversational response for the user "
    "based *only* on this data. Directly state the address you received from the tool. "
    "If the tool reports that the location was not found, say that you could not find it "
    "on the map and do not guess an address."
)


class ChatOrchestrator:
    """Produce one assistant reply for one user message."""

    def __init__(
        self,
        llm_client: Any,
        geocoder: Geocoder,
        max_history_turns: int = MAX_HISTORY_TURNS
    ):
        """
        Args:
            llm_client: GeminiClient or GroqClient
            geocoder: Resolver used for get_location_info calls
            max_history_turns: Trailing window of prior turns sent to the model
        """
        self.llm_client = llm_client
        self.geocoder = geocoder
        self.max_history_turns = max_history_turns

    def reply(self, context: ConversationContext) -> str:
        """
        Run the two-pass protocol for one message.

        Raises:
            LLMClientError: If either model call fails or returns something unusable
        """
        start_time = time.time()
        messages = context.as_messages(self.max_history_turns)
        logger.info(f"Chat request: history_turns={len(messages) - 1}, message_len={len(context.message)}")

        first = self.llm_client.generate(
            messages,
            system_instruction=SYSTEM_INSTRUCTION,
            tools=[LOCATION_TOOL]
        )

        if isinstance(first, TextReply):
            logger.info("Model answered directly without a tool call")
            return first.text

        place_name = self._place_name(first, start_time)
        tool_result = self.resolve_location(place_name)

        grounding_messages = messages + [
            tool_call_message(first),
            tool_result_message(first, tool_result.to_payload()),
        ]
        second = self.llm_client.generate(
            grounding_messages,
            system_instruction=GROUNDING_INSTRUCTION
        )
        if not isinstance(second, TextReply):
            raise invalid_response(
                self._model_name(), start_time,
                "grounding call returned a tool call instead of text"
            )

        final_reply = second.text
        if isinstance(tool_result, LocationFound):
            final_reply += f"\n\n[View on Google Maps]({maps_link(tool_result.latitude, tool_result.longitude)})"
        else:
            final_reply += f"\n\n(Could not find \"{place_name}\" on the map)"

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Grounded reply for {place_name!r}: found={isinstance(tool_result, LocationFound)}, "
            f"latency={latency_ms}ms"
        )
        return final_reply

    def resolve_location(self, place_name: str) -> ToolResult:
        """Run get_location_info; a missed lookup becomes an explicit not-found result."""
        location = self.geocoder.geocode(place_name)
        if location is None:
            logger.info(f"Location not found: {place_name}")
            return LocationNotFound(name=place_name)
        return LocationFound(
            name=place_name,
            address=location.formatted_address,
            latitude=location.latitude,
            longitude=location.longitude,
        )

    def _place_name(self, call: ToolCallReply, start_time: float) -> str:
        if call.name != LOCATION_TOOL_NAME:
            raise invalid_response(self._model_name(), start_time, f"unknown tool requested: {call.name}")

        place_name: Optional[str] = call.args.get("place_name")
        if not isinstance(place_name, str) or not place_name.strip():
            raise invalid_response(self._model_name(), start_time, "tool call is missing place_name")
        return place_name.strip()

    def _model_name(self) -> str:
        return getattr(self.llm_client, "model", "unknown")
