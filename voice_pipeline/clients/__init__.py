"""
Collaborator clients for speech-to-text and semantic interpretation.
"""

from .http_client import HttpCallError, RetryingHttpClient
from .stt_client import (
    SpeechToTextClient,
    WhisperClient,
    DeepgramClient,
    parse_whisper_response,
    parse_deepgram_response,
    create_stt_client
)
from .interpretation_client import (
    InterpretationClient,
    RuleBasedInterpreter,
    OpenAIInterpreter,
    parse_interpretation,
    create_interpreter
)

__all__ = [
    'HttpCallError',
    'RetryingHttpClient',
    'SpeechToTextClient',
    'WhisperClient',
    'DeepgramClient',
    'parse_whisper_response',
    'parse_deepgram_response',
    'create_stt_client',
    'InterpretationClient',
    'RuleBasedInterpreter',
    'OpenAIInterpreter',
    'parse_interpretation',
    'create_interpreter',
]
