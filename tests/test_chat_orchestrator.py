"""Unit tests for the two-pass chat protocol."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock, MagicMock, patch
from models.conversation import ConversationContext, Turn
from models.llm import TextReply, ToolCallReply
from models.location import GeocodedLocation, LocationFound, LocationNotFound
from services.chat_orchestrator import (
    ChatOrchestrator,
    LOCATION_TOOL,
    GROUNDING_INSTRUCTION,
    SYSTEM_INSTRUCTION,
)
from services.geocoder import Geocoder
from services.llm_client import LLMClientError, LLMError


@pytest.fixture
def llm_client():
    client = Mock()
    client.model = "gemini-1.5-flash"
    return client


@pytest.fixture
def geocoder():
    return Mock(spec=Geocoder)


def location_call(place_name="Mount Arayat"):
    return ToolCallReply(name="get_location_info", args={"place_name": place_name}, call_id="call_1")


class TestDirectReply:
    """Replies that need no tool call."""

    def test_text_reply_is_returned_verbatim(self, llm_client, geocoder):
        """A direct text answer is the final reply with one model call and no lookup."""
        llm_client.generate.return_value = TextReply(text="Try the Candaba Wetlands!")
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        reply = orchestrator.reply(ConversationContext(message="Any bird watching spots?"))

        assert reply == "Try the Candaba Wetlands!"
        assert llm_client.generate.call_count == 1
        geocoder.geocode.assert_not_called()

    def test_first_call_declares_location_tool(self, llm_client, geocoder):
        """The first call carries the persona prompt and the location tool."""
        llm_client.generate.return_value = TextReply(text="Hello!")
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        orchestrator.reply(ConversationContext(message="Hi"))

        kwargs = llm_client.generate.call_args.kwargs
        assert kwargs["system_instruction"] == SYSTEM_INSTRUCTION
        assert kwargs["tools"] == [LOCATION_TOOL]

    def test_history_precedes_message(self, llm_client, geocoder):
        """Prior turns come first, in order, with the new message last."""
        llm_client.generate.return_value = TextReply(text="Sure")
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        context = ConversationContext(
            message="And for lunch?",
            history=[
                Turn(role="user", content="Plan my morning"),
                Turn(role="assistant", content="Start at Clark"),
            ]
        )
        orchestrator.reply(context)

        messages = llm_client.generate.call_args.args[0]
        assert [(m.role, m.text) for m in messages] == [
            ("user", "Plan my morning"),
            ("assistant", "Start at Clark"),
            ("user", "And for lunch?"),
        ]

    def test_history_is_capped(self, llm_client, geocoder):
        """Only the trailing window of history reaches the model."""
        llm_client.generate.return_value = TextReply(text="Sure")
        orchestrator = ChatOrchestrator(llm_client, geocoder, max_history_turns=2)

        history = [Turn(role="user", content=f"turn {i}") for i in range(6)]
        orchestrator.reply(ConversationContext(message="latest", history=history))

        messages = llm_client.generate.call_args.args[0]
        assert [m.text for m in messages] == ["turn 4", "turn 5", "latest"]


class TestGroundedReply:
    """Replies that go through get_location_info."""

    def test_found_location_appends_map_link(self, llm_client, geocoder):
        """A resolved place ends the reply with a map link built from its coordinates."""
        llm_client.generate.side_effect = [
            location_call("Mount Arayat"),
            TextReply(text="Mount Arayat National Park is in Arayat, Pampanga."),
        ]
        geocoder.geocode.return_value = GeocodedLocation(
            formatted_address="Arayat, Pampanga, Philippines",
            latitude=15.2,
            longitude=120.74
        )
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        reply = orchestrator.reply(ConversationContext(message="Where is Mount Arayat?"))

        assert reply.startswith("Mount Arayat National Park is in Arayat, Pampanga.")
        assert reply.endswith(
            "\n\n[View on Google Maps](https://www.google.com/maps/search/?api=1&query=15.2,120.74)"
        )
        geocoder.geocode.assert_called_once_with("Mount Arayat")
        assert llm_client.generate.call_count == 2

    def test_grounding_call_has_no_tools(self, llm_client, geocoder):
        """The second call sees the tool exchange but cannot call tools again."""
        llm_client.generate.side_effect = [
            location_call("Clark"),
            TextReply(text="Clark is in Angeles."),
        ]
        geocoder.geocode.return_value = GeocodedLocation("Clark, Angeles, Pampanga", 15.18, 120.55)
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        orchestrator.reply(ConversationContext(message="Where is Clark?"))

        second = llm_client.generate.call_args_list[1]
        assert second.kwargs["system_instruction"] == GROUNDING_INSTRUCTION
        assert "tools" not in second.kwargs

        messages = second.args[0]
        assert messages[0].text == "Where is Clark?"
        assert messages[1].role == "assistant"
        assert messages[1].tool_call.name == "get_location_info"
        assert messages[2].role == "tool"
        assert messages[2].tool_result == {
            "name": "Clark",
            "address": "Clark, Angeles, Pampanga",
            "lat": 15.18,
            "lng": 120.55,
        }

    def test_not_found_location_says_so(self, llm_client, geocoder):
        """An unresolved place yields a not-found note and no invented link."""
        llm_client.generate.side_effect = [
            location_call("Atlantis Resort"),
            TextReply(text="Sorry, I couldn't find that place."),
        ]
        geocoder.geocode.return_value = None
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        reply = orchestrator.reply(ConversationContext(message="Where is Atlantis Resort?"))

        assert 'Could not find "Atlantis Resort" on the map' in reply
        assert "google.com/maps" not in reply

        tool_message = llm_client.generate.call_args_list[1].args[0][-1]
        assert tool_message.tool_result == {
            "name": "Atlantis Resort",
            "error": "Location not found by the mapping service.",
        }

    def test_unknown_tool_is_invalid_response(self, llm_client, geocoder):
        llm_client.generate.return_value = ToolCallReply(name="book_hotel", args={})
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        with pytest.raises(LLMClientError) as exc_info:
            orchestrator.reply(ConversationContext(message="Book me a room"))

        assert exc_info.value.error.code == "INVALID_RESPONSE"
        geocoder.geocode.assert_not_called()

    def test_missing_place_name_is_invalid_response(self, llm_client, geocoder):
        llm_client.generate.return_value = ToolCallReply(name="get_location_info", args={"place_name": "  "})
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        with pytest.raises(LLMClientError) as exc_info:
            orchestrator.reply(ConversationContext(message="Where?"))

        assert exc_info.value.error.code == "INVALID_RESPONSE"

    def test_second_tool_call_is_invalid_response(self, llm_client, geocoder):
        """The grounding call must produce text."""
        llm_client.generate.side_effect = [location_call(), location_call()]
        geocoder.geocode.return_value = None
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        with pytest.raises(LLMClientError) as exc_info:
            orchestrator.reply(ConversationContext(message="Where is Mount Arayat?"))

        assert exc_info.value.error.code == "INVALID_RESPONSE"

    def test_model_errors_propagate(self, llm_client, geocoder):
        """Upstream model failures are not swallowed."""
        llm_client.generate.side_effect = LLMClientError(
            LLMError(code="API_ERROR", message="Gemini API error: 500 - boom", details={})
        )
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        with pytest.raises(LLMClientError):
            orchestrator.reply(ConversationContext(message="Hi"))


class TestResolveLocation:
    """Test get_location_info execution."""

    def test_found(self, llm_client, geocoder):
        geocoder.geocode.return_value = GeocodedLocation("San Fernando, Pampanga", 15.03, 120.69)
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        result = orchestrator.resolve_location("San Fernando")

        assert isinstance(result, LocationFound)
        assert result.to_payload() == {
            "name": "San Fernando",
            "address": "San Fernando, Pampanga",
            "lat": 15.03,
            "lng": 120.69,
        }

    def test_not_found(self, llm_client, geocoder):
        geocoder.geocode.return_value = None
        orchestrator = ChatOrchestrator(llm_client, geocoder)

        result = orchestrator.resolve_location("Nowhere")

        assert isinstance(result, LocationNotFound)
        assert result.error == "Location not found by the mapping service."

    @patch('httpx.Client')
    def test_lookup_is_scoped_to_region(self, mock_client_class, llm_client):
        """The geocoding query carries the region qualifier and bias."""
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"status": "ZERO_RESULTS", "results": []}
        mock_client = MagicMock()
        mock_client.__enter__.return_value.get.return_value = mock_response
        mock_client_class.return_value = mock_client

        orchestrator = ChatOrchestrator(llm_client, Geocoder(api_key="maps_key"))
        orchestrator.resolve_location("Mount Arayat")

        params = mock_client.__enter__.return_value.get.call_args.kwargs["params"]
        assert params["address"] == "Mount Arayat, Pampanga, Philippines"
        assert params["region"] == "ph"
