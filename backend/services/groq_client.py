"""LLM Client for Groq API integration."""
import json
import time
import logging
from typing import Any, Dict, List, Optional
from groq import Groq
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError

from config import GROQ_API_KEY, GROQ_MODEL, ConfigurationError
from models.llm import ChatMessage, FunctionDeclaration, ModelReply, TextReply, ToolCallReply
from services.llm_client import client_error, invalid_response

logger = logging.getLogger(__name__)


class GroqClient:
    """Client for interfacing with Groq chat completions, including tool calls."""

    def __init__(self, api_key: Optional[str] = None, model: str = GROQ_MODEL):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Default model name for generate()

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ConfigurationError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        self.client = Groq(api_key=self.api_key)
        logger.info(f"GroqClient initialized with model: {model}")

    def generate(
        self,
        messages: List[ChatMessage],
        system_instruction: Optional[str] = None,
        tools: Optional[List[FunctionDeclaration]] = None,
        json_output: bool = False,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        safety_settings: Optional[List[Dict[str, str]]] = None,
        model: Optional[str] = None
    ) -> ModelReply:
        """
        Generate a reply using the Groq API.

        `safety_settings` is accepted for interface parity and ignored; Groq
        has no per-request safety thresholds.

        Raises:
            LLMClientError: Structured error with code, message, and details
        """
        model = model or self.model
        request: Dict[str, Any] = {
            "model": model,
            "messages": self.build_messages(messages, system_instruction),
        }
        if tools:
            request["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    }
                }
                for tool in tools
            ]
        if json_output:
            request["response_format"] = {"type": "json_object"}
        if temperature is not None:
            request["temperature"] = temperature
        if max_output_tokens is not None:
            request["max_tokens"] = max_output_tokens

        start_time = time.time()

        try:
            logger.debug(f"Generating response with model: {model}")
            response = self.client.chat.completions.create(**request)

        except RateLimitError as e:
            raise client_error(
                "RATE_LIMIT_ERROR", "Rate limit exceeded. Please try again in a few moments.",
                model, start_time, exc_info=True, retry_after=60, original_error=str(e)
            )
        except AuthenticationError as e:
            raise client_error(
                "AUTHENTICATION_ERROR", "Authentication failed. Please check your API key.",
                model, start_time, exc_info=True, original_error=str(e)
            )
        except APITimeoutError as e:
            raise client_error(
                "TIMEOUT_ERROR", "Request timed out. Please try again.",
                model, start_time, exc_info=True, original_error=str(e)
            )
        except APIError as e:
            raise client_error(
                "API_ERROR", f"Groq API error: {str(e)}",
                model, start_time, exc_info=True, original_error=str(e)
            )

        reply = self.parse_reply(response, model, start_time)
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Groq reply: model={model}, kind={reply.kind}, latency={latency_ms}ms")
        return reply

    @staticmethod
    def build_messages(messages: List[ChatMessage], system_instruction: Optional[str] = None) -> List[Dict[str, Any]]:
        """Translate provider-neutral messages into chat-completions messages."""
        converted: List[Dict[str, Any]] = []
        if system_instruction:
            converted.append({"role": "system", "content": system_instruction})

        for message in messages:
            if message.tool_call is not None:
                converted.append({
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [{
                        "id": message.tool_call.call_id,
                        "type": "function",
                        "function": {
                            "name": message.tool_call.name,
                            "arguments": json.dumps(message.tool_call.args),
                        }
                    }]
                })
            elif message.tool_result is not None:
                converted.append({
                    "role": "tool",
                    "tool_call_id": message.tool_call_id,
                    "content": json.dumps(message.tool_result),
                })
            else:
                role = "assistant" if message.role == "assistant" else "user"
                converted.append({"role": role, "content": message.text or ""})
        return converted

    @staticmethod
    def parse_reply(response: Any, model: str, start_time: float) -> ModelReply:
        """Pick the tool call or the text out of a chat-completions response."""
        if not getattr(response, "choices", None):
            raise invalid_response(model, start_time, "response has no choices")

        message = response.choices[0].message
        tool_calls = getattr(message, "tool_calls", None) or []
        if tool_calls:
            call = tool_calls[0]
            try:
                args = json.loads(call.function.arguments or "{}")
            except (TypeError, ValueError):
                raise invalid_response(model, start_time, "tool call arguments are not valid JSON")
            if not isinstance(args, dict):
                raise invalid_response(model, start_time, "tool call arguments are not an object")
            return ToolCallReply(name=call.function.name, args=args, call_id=call.id)

        text = message.content
        if not text or not text.strip():
            raise invalid_response(model, start_time, "message has no content")
        return TextReply(text=text)
