import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from langsmith import traceable

from app.agent.prompts import build_report_system_prompt, build_report_user_prompt
from app.core.config import settings
from app.core.errors import ExternalServiceError
from app.core.models_config import get_model_config

logger = logging.getLogger(__name__)

DEFAULT_REPORT_MODEL = "gpt-4o-mini"


def _is_reasoning_model(name: str) -> bool:
    _lower = name.lower()
    return any(tag in _lower for tag in ("gpt-5", "o1", "o3", "o4"))


def build_report_llm() -> ChatOpenAI:
    """ChatOpenAI client for reports, from config/models.yaml with env overrides."""
    report = get_model_config("report")

    api_key = (settings.OPENAI_API_KEY or "").strip()
    if not api_key:
        raise ExternalServiceError("OPENAI_API_KEY is not configured")

    model_name = settings.REPORT_MODEL or report.get("name", DEFAULT_REPORT_MODEL)
    temperature = float(report.get("temperature", 0.3))
    max_tokens = int(report.get("max_tokens", 4000))
    timeout = int(report.get("timeout", 60))
    max_retries = int(report.get("max_retries", 2))

    if _is_reasoning_model(model_name):
        logger.info(f"Reasoning model detected: '{model_name}', no temperature")
        return ChatOpenAI(
            model=model_name,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            model_kwargs={"max_completion_tokens": max(max_tokens, 8000)},
        )

    return ChatOpenAI(
        model=model_name,
        api_key=api_key,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
        max_retries=max_retries,
    )


def _content_text(content: Any) -> str:
    """Flatten a message content (plain string or list of content blocks)."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ReportAgent:
    """Answers free-form questions about the ad pipeline from a data snapshot."""

    def __init__(self, llm: Optional[ChatOpenAI] = None):
        self._llm = llm

    @property
    def llm(self) -> ChatOpenAI:
        if self._llm is None:
            self._llm = build_report_llm()
        return self._llm

    def _messages(self, query: str, snapshot: Dict[str, Any]) -> List:
        return [
            SystemMessage(content=build_report_system_prompt(snapshot)),
            HumanMessage(content=build_report_user_prompt(query)),
        ]

    @traceable
    async def generate(self, query: str, snapshot: Dict[str, Any]) -> str:
        try:
            response = await self.llm.ainvoke(self._messages(query, snapshot))
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Report LLM call failed: {e}")
            raise ExternalServiceError(f"Report generation failed: {e}")

        text = _content_text(response.content).strip()
        if not text:
            raise ExternalServiceError("The report model returned an empty response")
        return text

    async def stream(self, query: str, snapshot: Dict[str, Any]) -> AsyncIterator[str]:
        """Yield report text chunks as the model produces them."""
        received = False
        try:
            async for chunk in self.llm.astream(self._messages(query, snapshot)):
                text = _content_text(chunk.content)
                if text:
                    received = True
                    yield text
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Report LLM stream failed: {e}")
            raise ExternalServiceError(f"Report generation failed: {e}")

        if not received:
            raise ExternalServiceError("The report model returned an empty response")
