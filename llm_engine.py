"""
LLM Engine - Model Factory and the portfolio chat assistant.
Supports OpenAI-compatible APIs (cloud or a local Ollama server).
"""

import json
from typing import Dict, Iterable, List, Literal, Optional
import logging

from langchain_openai import ChatOpenAI
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from config import get_settings
from models import AssetRecord
from prompts import get_system_prompt
from services.errors import ChatError
from services.portfolio import record_currency

logger = logging.getLogger(__name__)

# Upper bound on tool round trips for a single question
MAX_TOOL_ROUNDS = 4


class LLMClient:
    """
    Factory class for creating LLM clients with different backends.
    Uses centralized configuration from config.py.
    """

    def __init__(
        self,
        mode: Literal["cloud", "local"] = "cloud",
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ):
        """
        Initialize the LLM client.

        Args:
            mode: "cloud" for OpenAI-compatible APIs, "local" for Ollama/local server
            model_name: Model name or endpoint ID (e.g., "gpt-4o", "deepseek-chat")
            base_url: Base URL for API
            api_key: API key
            temperature: Sampling temperature (defaults to settings.chat_temperature)
            max_tokens: Maximum tokens in response
        """
        self.mode = mode
        self.model_name = model_name
        self.temperature = temperature if temperature is not None else get_settings().chat_temperature
        self.max_tokens = max_tokens

        self.llm = self._create_llm(base_url, api_key)

    def _create_llm(self, base_url: Optional[str], api_key: Optional[str]) -> ChatOpenAI:
        """Create a ChatOpenAI instance based on the mode."""
        settings = get_settings()

        if self.mode == "cloud":
            url = base_url or settings.openai_base_url
            model = self.model_name or settings.openai_model
            key = api_key or settings.openai_api_key

            if not key:
                raise ValueError("API key not found. Set OPENAI_API_KEY environment variable.")
            if not model:
                raise ValueError("Model name not found. Set OPENAI_MODEL environment variable.")

            logger.info(f"Initializing Cloud LLM: {model} at {url or 'OpenAI official'}")
            return ChatOpenAI(
                model=model,
                api_key=key,
                base_url=url,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )

        elif self.mode == "local":
            model = self.model_name or settings.local_model
            url = base_url or settings.local_llm_url
            key = api_key or "ollama"

            logger.info(f"Initializing Local LLM: {model} at {url}")
            return ChatOpenAI(
                model=model,
                base_url=url,
                api_key=key,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        else:
            raise ValueError(f"Invalid mode: {self.mode}. Must be 'cloud' or 'local'.")

    def get_llm(self) -> ChatOpenAI:
        """Get the LangChain ChatOpenAI instance."""
        return self.llm

    def get_mode(self) -> str:
        """Get the current mode ('cloud' or 'local')."""
        return self.mode

    def get_model_name(self) -> str:
        """Get the current model name."""
        return self.llm.model_name


def records_context(records: Iterable[AssetRecord]) -> str:
    """Compact JSON of the ledger for the system prompt."""
    simplified = [
        {
            'date': r.date,
            'type': r.asset_type,
            'name': r.name,
            'action': r.action,
            'amount': r.amount,
            'status': r.status,
            'currency': record_currency(r),
            'remarks': r.remarks or '',
        }
        for r in records
    ]
    return json.dumps(simplified, ensure_ascii=False)


def build_system_prompt(records: Iterable[AssetRecord], language: str = "en") -> str:
    """Fill the language's prompt template with the user's records."""
    return get_system_prompt(language).replace("{records}", records_context(records))


class ChatAssistant:
    """
    Conversational assistant over the user's ledger.

    The system prompt is built once per session from the records; portfolio
    tools, when given, are bound to the model so it can ask for exact totals.
    """

    def __init__(
        self,
        llm: ChatOpenAI,
        records: Iterable[AssetRecord],
        tools: Optional[List[BaseTool]] = None,
        language: str = "en"
    ):
        self.tools: Dict[str, BaseTool] = {t.name: t for t in (tools or [])}
        self.model = llm.bind_tools(list(self.tools.values())) if self.tools else llm
        self.history: List[BaseMessage] = [SystemMessage(content=build_system_prompt(records, language))]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True
    )
    def _invoke(self, messages: List[BaseMessage]) -> AIMessage:
        return self.model.invoke(messages)

    def _run_tool(self, call: dict) -> ToolMessage:
        selected = self.tools.get(call["name"])
        if selected is None:
            content = f"Unknown tool: {call['name']}"
        else:
            try:
                content = str(selected.invoke(call.get("args", {})))
            except Exception as e:
                logger.error(f"Tool {call['name']} failed: {e}")
                content = f"Tool error: {e}"
        return ToolMessage(content=content, tool_call_id=call["id"])

    def send(self, message: str) -> str:
        """
        Ask a question and return the assistant's reply.

        Raises:
            ChatError: when the model cannot be reached after retries
        """
        if not message.strip():
            raise ChatError("Message is empty.")

        pending = self.history + [HumanMessage(content=message)]
        try:
            response = self._invoke(pending)
            rounds = 0
            while getattr(response, "tool_calls", None) and rounds < MAX_TOOL_ROUNDS:
                pending.append(response)
                pending.extend(self._run_tool(call) for call in response.tool_calls)
                response = self._invoke(pending)
                rounds += 1
        except Exception as e:
            logger.error(f"Chat error: {e}")
            raise ChatError("Sorry, I couldn't reach the assistant. Please try again.") from e

        pending.append(response)
        self.history = pending
        content = response.content
        if isinstance(content, list):
            # Some providers return content blocks
            content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return content

    def reset(self, records: Iterable[AssetRecord], language: str = "en"):
        """Start a new conversation with a fresh view of the records."""
        self.history = [SystemMessage(content=build_system_prompt(records, language))]


def create_llm_from_config(config: dict) -> LLMClient:
    """Create an LLMClient from a configuration dictionary."""
    return LLMClient(
        mode=config.get("mode", "cloud"),
        model_name=config.get("model_name"),
        base_url=config.get("base_url"),
        api_key=config.get("api_key"),
        temperature=config.get("temperature"),
        max_tokens=config.get("max_tokens")
    )
