"""
Unit tests for the semantic interpretation collaborators.
"""

import json
import pytest
from unittest.mock import Mock

from voice_pipeline.clients.http_client import HttpCallError, RetryingHttpClient
from voice_pipeline.clients.interpretation_client import (
    OpenAIInterpreter,
    RuleBasedInterpreter,
    create_interpreter,
    format_household_context,
    parse_interpretation
)
from voice_pipeline.config.settings import get_settings
from voice_pipeline.exceptions import ConfigurationError, ExtractionError
from voice_pipeline.models.extraction import DateType, TaskCategory, UrgencyLevel
from voice_pipeline.models.household import HouseholdContext


VALID_PAYLOAD = {
    'action': {
        'raw': 'aller chez le médecin',
        'normalized': 'aller chez le médecin ',
        'verb': 'aller',
        'object': 'chez le médecin',
    },
    'child': {'raw': 'Lucas', 'matchedName': 'Lucas'},
    'date': {'raw': 'demain', 'type': 'relative', 'recurrence': None},
    'category': {'primary': 'health', 'secondary': 'transport'},
    'urgency': {'level': 'high', 'indicators': ['demain']},
    'assigneeSuggestion': 'Sophie',
}


class TestParseInterpretation:
    """Test suite for interpretation payload validation."""

    def test_valid_payload(self):
        """Test a complete payload converts field by field."""
        reading = parse_interpretation(VALID_PAYLOAD, 'gpt-4o-mini')

        assert reading.action.raw == 'aller chez le médecin'
        assert reading.action.normalized == 'aller chez le médecin'
        assert reading.action.verb == 'aller'
        assert reading.child_name == 'Lucas'
        assert reading.date_raw == 'demain'
        assert reading.date_type == DateType.RELATIVE
        assert reading.category == TaskCategory.HEALTH
        assert reading.secondary_category == TaskCategory.TRANSPORT
        assert reading.urgency == UrgencyLevel.HIGH
        assert reading.urgency_indicators == ('demain',)
        assert reading.assignee_suggestion == 'Sophie'
        assert reading.model == 'gpt-4o-mini'

    def test_minimal_payload_defaults(self):
        """Test optional sections fall back to empty readings."""
        payload = {
            'action': {'raw': 'ranger'},
            'category': {'primary': 'household'},
            'urgency': {},
        }

        reading = parse_interpretation(payload, 'm')

        assert reading.action.normalized == 'ranger'
        assert reading.child_name is None
        assert reading.date_raw == ''
        assert reading.date_type == DateType.NONE
        assert reading.secondary_category is None
        assert reading.urgency == UrgencyLevel.NONE
        assert reading.urgency_indicators == ()

    @pytest.mark.parametrize('payload', [
        {},
        {'action': {'raw': 'x'}, 'category': {'primary': 'health'}},
        {'action': 'x', 'category': {'primary': 'health'}, 'urgency': {}},
        {'action': {'raw': 'x'}, 'category': {'primary': 'gardening'}, 'urgency': {}},
        {'action': {'raw': 'x'}, 'category': {'primary': 'health'}, 'urgency': {'level': 'extreme'}},
        {'action': {'raw': 'x'}, 'category': {'primary': 'health'}, 'urgency': {'indicators': 'now'}},
    ])
    def test_invalid_payloads_raise(self, payload):
        """Test malformed payloads raise ExtractionError."""
        with pytest.raises(ExtractionError):
            parse_interpretation(payload, 'm')


class TestFormatHouseholdContext:
    """Test suite for household prompt rendering."""

    def test_lists_children_and_parents(self, household):
        """Test children carry age and nicknames, parents their role."""
        context = format_household_context(household)

        assert '- Lucas (7 years), nicknames: Lulu, Lou' in context
        assert '- Emma (4 years), nicknames: Mimi' in context
        assert '- Sophie (mother)' in context
        assert '- Thomas (father)' in context

    def test_empty_household(self):
        """Test placeholders for an empty household."""
        context = format_household_context(HouseholdContext('household-empty'))

        assert 'No children registered' in context
        assert 'No parents registered' in context


class TestOpenAIInterpreter:
    """Test suite for the OpenAI interpreter."""

    @pytest.fixture
    def http(self):
        """Create a mocked HTTP transport."""
        return Mock(spec=RetryingHttpClient)

    def test_requires_api_key(self):
        """Test construction without a key is a configuration error."""
        with pytest.raises(ConfigurationError):
            OpenAIInterpreter(api_key=None)

    @pytest.mark.asyncio
    async def test_interpret_success(self, http, household):
        """Test a JSON-mode completion is parsed into an Interpretation."""
        # Arrange
        http.post.return_value = {
            'choices': [{'message': {'content': json.dumps(VALID_PAYLOAD)}}]
        }
        interpreter = OpenAIInterpreter(api_key='sk-test', http=http)

        # Act
        reading = await interpreter.interpret(
            'Lucas doit aller chez le médecin demain', 'fr', household
        )

        # Assert
        assert reading.category == TaskCategory.HEALTH
        assert reading.model == 'gpt-4o-mini'

        args, kwargs = http.post.call_args
        assert args[0] == OpenAIInterpreter.API_URL
        assert kwargs['headers'] == {'Authorization': 'Bearer sk-test'}
        body = kwargs['json']
        assert body['response_format'] == {'type': 'json_object'}
        assert "language 'fr'" in body['messages'][0]['content']
        assert 'Note: Lucas doit aller chez le médecin demain' in body['messages'][1]['content']
        assert '- Lucas (7 years)' in body['messages'][1]['content']

    @pytest.mark.asyncio
    async def test_http_failure_maps_to_extraction_error(self, http, household):
        """Test transport failures surface as ExtractionError with retryability."""
        http.post.side_effect = HttpCallError('HTTP 503', status_code=503, retryable=True)
        interpreter = OpenAIInterpreter(api_key='sk-test', http=http)

        with pytest.raises(ExtractionError) as exc_info:
            await interpreter.interpret('texte', 'fr', household)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize('response', [
        {},
        {'choices': []},
        {'choices': [{'message': {'content': 'not json'}}]},
        {'choices': [{'message': {'content': '[1, 2]'}}]},
    ])
    async def test_unparseable_response(self, http, household, response):
        """Test malformed completions raise ExtractionError."""
        http.post.return_value = response
        interpreter = OpenAIInterpreter(api_key='sk-test', http=http)

        with pytest.raises(ExtractionError):
            await interpreter.interpret('texte', 'fr', household)


class TestRuleBasedInterpreter:
    """Test suite for the rule-based interpreter."""

    @pytest.mark.asyncio
    async def test_reads_health_appointment(self, household):
        """Test the lexicons recognize child, date phrase and category."""
        reading = await RuleBasedInterpreter().interpret(
            'Lucas doit aller chez le médecin demain', 'fr', household
        )

        assert reading.child_name == 'Lucas'
        assert reading.date_raw == 'demain'
        assert reading.date_type == DateType.RELATIVE
        assert reading.category == TaskCategory.HEALTH
        assert reading.model == 'rules'

    @pytest.mark.asyncio
    async def test_no_child(self, household):
        """Test utterances without a child name leave it unset."""
        reading = await RuleBasedInterpreter().interpret('Acheter du pain', 'fr', household)

        assert reading.child_name is None


class TestCreateInterpreter:
    """Test suite for interpreter selection."""

    def test_rules_without_key(self):
        """Test the rule-based interpreter is used when no key is configured."""
        assert isinstance(create_interpreter(get_settings()), RuleBasedInterpreter)

    def test_openai_with_key(self, monkeypatch):
        """Test the OpenAI interpreter is built from settings."""
        monkeypatch.setenv('OPENAI_API_KEY', 'sk-test')
        monkeypatch.setenv('LLM_MODEL', 'gpt-4o')

        interpreter = create_interpreter(get_settings())

        assert isinstance(interpreter, OpenAIInterpreter)
        assert interpreter.model == 'gpt-4o'
        assert interpreter.http.timeout == 30.0
