"""Gemini generateContent client with function-calling support."""
import time
import uuid
import logging
from typing import Any, Dict, List, Optional
import httpx

from config import GEMINI_API_KEY, GEMINI_API_BASE_URL, CHAT_MODEL, HTTP_TIMEOUT, ConfigurationError
from models.llm import ChatMessage, FunctionDeclaration, ModelReply, TextReply, ToolCallReply
from services.llm_client import client_error, invalid_response

logger = logging.getLogger(__name__)


class GeminiClient:
    """Client for the Gemini REST API (`models/{model}:generateContent`)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = CHAT_MODEL,
        base_url: str = GEMINI_API_BASE_URL,
        timeout: float = HTTP_TIMEOUT
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY from environment)
            model: Default model name for generate()
            base_url: API root, e.g. https://generativelanguage.googleapis.com/v1beta
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or GEMINI_API_KEY
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY must be provided or set in environment")

        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        logger.info(f"GeminiClient initialized with model: {model}")

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
        Send one generateContent request.

        Returns:
            TextReply, or ToolCallReply when the model asks for a declared tool

        Raises:
            LLMClientError: On transport failure, non-2xx status or an
                unexpected payload shape
        """
        model = model or self.model
        payload = self.build_payload(
            messages,
            system_instruction=system_instruction,
            tools=tools,
            json_output=json_output,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            safety_settings=safety_settings
        )
        url = f"{self.base_url}/models/{model}:generateContent"

        start_time = time.time()
        try:
            logger.debug(f"Calling Gemini: model={model}, messages={len(messages)}, tools={len(tools or [])}")
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    url,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload
                )
        except httpx.TimeoutException as e:
            raise client_error(
                "TIMEOUT_ERROR", "Request timed out. Please try again.",
                model, start_time, original_error=str(e)
            )
        except httpx.RequestError as e:
            raise client_error(
                "NETWORK_ERROR", f"Could not reach the Gemini API: {e}",
                model, start_time, original_error=str(e)
            )

        if response.status_code == 429:
            raise client_error(
                "RATE_LIMIT_ERROR", "Rate limit exceeded. Please try again in a few moments.",
                model, start_time, status_code=429, body=response.text
            )
        if response.status_code in (401, 403):
            raise client_error(
                "AUTHENTICATION_ERROR", "Authentication failed. Please check your API key.",
                model, start_time, status_code=response.status_code, body=response.text
            )
        if response.status_code != 200:
            raise client_error(
                "API_ERROR", f"Gemini API error: {response.status_code} - {response.text}",
                model, start_time, status_code=response.status_code, body=response.text
            )

        try:
            data = response.json()
        except ValueError:
            raise invalid_response(model, start_time, "response body is not JSON")

        reply = self.parse_reply(data, model, start_time)
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Gemini reply: model={model}, kind={reply.kind}, latency={latency_ms}ms")
        return reply

    def build_payload(
        self,
        messages: List[ChatMessage],
        system_instruction: Optional[str] = None,
        tools: Optional[List[FunctionDeclaration]] = None,
        json_output: bool = False,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        safety_settings: Optional[List[Dict[str, str]]] = None
    ) -> Dict[str, Any]:
        """Translate provider-neutral messages into a generateContent body."""
        payload: Dict[str, Any] = {
            "contents": [self._to_content(message) for message in messages]
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if tools:
            payload["tools"] = [{
                "functionDeclarations": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": _to_gemini_schema(tool.parameters),
                    }
                    for tool in tools
                ]
            }]

        generation_config: Dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_output_tokens is not None:
            generation_config["maxOutputTokens"] = max_output_tokens
        if json_output:
            generation_config["responseMimeType"] = "application/json"
        if generation_config:
            payload["generationConfig"] = generation_config

        if safety_settings:
            payload["safetySettings"] = safety_settings
        return payload

    @staticmethod
    def _to_content(message: ChatMessage) -> Dict[str, Any]:
        if message.tool_call is not None:
            return {
                "role": "model",
                "parts": [{
                    "functionCall": {
                        "name": message.tool_call.name,
                        "args": message.tool_call.args,
                    }
                }]
            }
        if message.tool_result is not None:
            return {
                "role": "user",
                "parts": [{
                    "functionResponse": {
                        "name": message.tool_name,
                        "response": message.tool_result,
                    }
                }]
            }
        role = "model" if message.role == "assistant" else "user"
        return {"role": role, "parts": [{"text": message.text or ""}]}

    @staticmethod
    def parse_reply(data: Dict[str, Any], model: str, start_time: float) -> ModelReply:
        """Pick the tool call or the text out of a generateContent response."""
        if not isinstance(data, dict):
            raise invalid_response(model, start_time, f"response body is a {type(data).__name__}, not an object")

        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise invalid_response(model, start_time, "candidates is not a list")
        if not candidates:
            raise client_error(
                "BLOCKED_RESPONSE", "The model returned no candidates; the request may have been blocked.",
                model, start_time, prompt_feedback=data.get("promptFeedback")
            )

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise invalid_response(model, start_time, "candidate is not an object")
        content = candidate.get("content") or {}
        parts = (content.get("parts") if isinstance(content, dict) else None) or []
        if not isinstance(parts, list) or not all(isinstance(part, dict) for part in parts):
            raise invalid_response(
                model, start_time, "candidate content parts are malformed",
                finish_reason=candidate.get("finishReason")
            )
        if not parts:
            raise invalid_response(
                model, start_time, "candidate has no content parts",
                finish_reason=candidate.get("finishReason")
            )

        for part in parts:
            function_call = part.get("functionCall")
            if function_call:
                if not isinstance(function_call, dict) or not function_call.get("name"):
                    raise invalid_response(model, start_time, "function call without a name")
                if not isinstance(function_call.get("args") or {}, dict):
                    raise invalid_response(model, start_time, "function call args is not an object")
                return ToolCallReply(
                    name=function_call["name"],
                    args=function_call.get("args") or {},
                    call_id=function_call.get("id") or f"call_{uuid.uuid4().hex[:12]}"
                )

        text = "".join(part["text"] for part in parts if isinstance(part.get("text"), str))
        if not text.strip():
            raise invalid_response(
                model, start_time, "candidate has no text",
                finish_reason=candidate.get("finishReason")
            )
        return TextReply(text=text)


def _to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Gemini spells JSON-schema types in upper case ("OBJECT", "STRING")."""
    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: _to_gemini_schema(prop) for name, prop in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = _to_gemini_schema(value)
        else:
            converted[key] = value
    return converted
