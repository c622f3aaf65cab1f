"""
Semantic interpretation collaborators.

An InterpretationClient reads an utterance in the context of a household and
returns an Interpretation: the action, the child it believes is meant, the
date phrase, category and urgency. The extraction stage treats this as a
second opinion and resolves every field locally.

Two implementations are provided:
- RuleBasedInterpreter: deterministic, built on the local lexicons. Used
  when no LLM is configured and in tests.
- OpenAIInterpreter: JSON-mode chat completion over HTTP.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from voice_pipeline.clients.http_client import HttpCallError, RetryingHttpClient
from voice_pipeline.exceptions import ConfigurationError, ExtractionError
from voice_pipeline.models.extraction import (
    DateType,
    ExtractedAction,
    Interpretation,
    TaskCategory,
    UrgencyLevel
)
from voice_pipeline.models.household import HouseholdContext
from voice_pipeline.services.semantic_extraction import (
    detect_category,
    detect_urgency,
    extract_action,
    match_child,
    parse_date
)

logger = logging.getLogger(__name__)


class InterpretationClient(ABC):
    """Interface of the semantic interpretation collaborator."""

    model: str = 'unknown'

    @abstractmethod
    async def interpret(
        self,
        text: str,
        language: str,
        household: HouseholdContext
    ) -> Interpretation:
        """
        Interpret an utterance.

        Raises:
            ExtractionError: On backend failure, timeout or invalid response
        """


class RuleBasedInterpreter(InterpretationClient):
    """
    Deterministic interpreter using keyword lexicons.

    Examples:
        >>> interpreter = RuleBasedInterpreter()
        >>> reading = await interpreter.interpret("Lucas doit aller chez le médecin demain", "fr", household)
        >>> reading.category
        <TaskCategory.HEALTH: 'health'>
    """

    model = 'rules'

    async def interpret(
        self,
        text: str,
        language: str,
        household: HouseholdContext
    ) -> Interpretation:
        child, _ = match_child(text, household)
        date = parse_date(text, language, datetime.now(timezone.utc))
        category = detect_category(text, language)
        urgency = detect_urgency(text, language)

        return Interpretation(
            action=extract_action(text),
            child_name=child.matched_name if child else None,
            date_raw=date.raw,
            date_type=date.type,
            recurrence=date.recurrence,
            category=category.primary,
            secondary_category=category.secondary,
            urgency=urgency.level,
            urgency_indicators=urgency.indicators,
            model=self.model
        )


SYSTEM_PROMPT = """You extract household tasks from short voice notes.
Reply with a single JSON object and nothing else:
{
  "action": {"raw": str, "normalized": str, "verb": str|null, "object": str|null},
  "child": {"raw": str|null, "matchedName": str|null} | null,
  "date": {"raw": str, "type": "absolute|relative|recurring|none", "recurrence": str|null},
  "category": {"primary": "%(categories)s", "secondary": str|null},
  "urgency": {"level": "critical|high|medium|low|none", "indicators": [str]},
  "assigneeSuggestion": str|null
}
The note is in language '%(language)s'. Only name children listed in the household."""


def format_household_context(household: HouseholdContext) -> str:
    """Render the household as prompt context."""
    children = '\n'.join(
        f"- {c.name}"
        + (f" ({c.age} years)" if c.age is not None else '')
        + (f", nicknames: {', '.join(c.nicknames)}" if c.nicknames else '')
        for c in household.children
    )
    parents = '\n'.join(f"- {p.name} ({p.role})" for p in household.parents)
    return (
        f"Children:\n{children or 'No children registered'}\n\n"
        f"Parents:\n{parents or 'No parents registered'}"
    )


def _enum_value(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ExtractionError(f"Invalid {field_name} in interpretation: {value!r}") from e


def parse_interpretation(payload: Dict[str, Any], model: str) -> Interpretation:
    """
    Validate an interpretation payload and convert it to an Interpretation.

    Args:
        payload: Decoded JSON object from the model
        model: Model identifier to record

    Returns:
        Interpretation

    Raises:
        ExtractionError: If required fields are missing or malformed
    """
    try:
        action_data = payload['action']
        date_data = payload.get('date') or {}
        category_data = payload['category']
        urgency_data = payload['urgency']
    except (KeyError, TypeError) as e:
        raise ExtractionError(f"Interpretation missing required field: {e}") from e

    if not isinstance(action_data, dict) or not isinstance(action_data.get('raw'), str):
        raise ExtractionError("Interpretation 'action' must contain a 'raw' string")

    child_data = payload.get('child') or {}
    secondary = category_data.get('secondary')
    indicators = urgency_data.get('indicators') or []
    if not isinstance(indicators, list):
        raise ExtractionError("Interpretation urgency indicators must be a list")

    return Interpretation(
        action=ExtractedAction(
            raw=action_data['raw'],
            normalized=(action_data.get('normalized') or action_data['raw']).strip(),
            verb=action_data.get('verb'),
            object=action_data.get('object')
        ),
        child_name=child_data.get('matchedName') or child_data.get('raw'),
        date_raw=date_data.get('raw') or '',
        date_type=_enum_value(DateType, date_data.get('type', 'none'), 'date type'),
        recurrence=date_data.get('recurrence'),
        category=_enum_value(TaskCategory, category_data.get('primary'), 'category'),
        secondary_category=_enum_value(TaskCategory, secondary, 'category') if secondary else None,
        urgency=_enum_value(UrgencyLevel, urgency_data.get('level', 'none'), 'urgency'),
        urgency_indicators=tuple(str(i) for i in indicators),
        assignee_suggestion=payload.get('assigneeSuggestion'),
        model=model
    )


class OpenAIInterpreter(InterpretationClient):
    """
    Interpretation through the OpenAI chat completions API in JSON mode.

    Attributes:
        api_key: OpenAI API key
        model: Chat model name
        temperature: Sampling temperature
        http: Retrying HTTP transport
    """

    API_URL = 'https://api.openai.com/v1/chat/completions'

    def __init__(
        self,
        api_key: Optional[str],
        model: str = 'gpt-4o-mini',
        temperature: float = 0.1,
        max_tokens: int = 1000,
        http: Optional[RetryingHttpClient] = None
    ):
        if not api_key:
            raise ConfigurationError("OpenAI interpreter requires an API key")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.http = http or RetryingHttpClient(timeout=30.0)

    def _build_body(self, text: str, language: str, household: HouseholdContext) -> Dict[str, Any]:
        system = SYSTEM_PROMPT % {
            'categories': '|'.join(c.value for c in TaskCategory),
            'language': language,
        }
        return {
            'model': self.model,
            'temperature': self.temperature,
            'max_tokens': self.max_tokens,
            'response_format': {'type': 'json_object'},
            'messages': [
                {'role': 'system', 'content': system},
                {'role': 'user', 'content': f"{format_household_context(household)}\n\nNote: {text}"},
            ],
        }

    async def interpret(
        self,
        text: str,
        language: str,
        household: HouseholdContext
    ) -> Interpretation:
        body = self._build_body(text, language, household)
        loop = asyncio.get_event_loop()

        try:
            response = await loop.run_in_executor(
                None,
                lambda: self.http.post(
                    self.API_URL,
                    headers={'Authorization': f'Bearer {self.api_key}'},
                    json=body
                )
            )
        except HttpCallError as e:
            logger.error(f"Interpretation request failed: {e}")
            raise ExtractionError(str(e), retryable=e.retryable) from e

        try:
            content = response['choices'][0]['message']['content']
            payload = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ExtractionError(f"Unparseable interpretation response: {e}") from e

        if not isinstance(payload, dict):
            raise ExtractionError("Interpretation response is not a JSON object")

        return parse_interpretation(payload, self.model)


def create_interpreter(settings) -> InterpretationClient:
    """
    Build the OpenAI interpreter when a key is configured, rules otherwise.
    """
    if not settings.openai_api_key:
        logger.info("No OPENAI_API_KEY configured, using rule-based interpretation")
        return RuleBasedInterpreter()

    return OpenAIInterpreter(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        http=RetryingHttpClient(
            timeout=settings.llm_timeout_seconds,
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay
        )
    )
