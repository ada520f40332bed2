"""Tests for the OpenRouter client that do not touch the network."""

import json

import pytest

from sitegen.services.generation.api_client import (
    ModelStreamError,
    OpenRouterClient,
    get_openrouter_breaker,
    parse_stream_line,
)


def _delta_line(text):
    return 'data: ' + json.dumps({'choices': [{'delta': {'content': text}}]})


@pytest.mark.unit
class TestParseStreamLine:

    def test_content_delta(self):
        assert parse_stream_line(_delta_line('<boltAction')) == (False, '<boltAction')

    def test_done_marker(self):
        assert parse_stream_line('data: [DONE]\n') == (True, None)

    @pytest.mark.parametrize('line', [
        '',
        '\n',
        ': OPENROUTER PROCESSING',
        'event: ping',
        'data: {not json',
        'data: {"choices": []}',
        'data: {"choices": [{"delta": {"role": "assistant"}}]}',
    ])
    def test_lines_without_text(self, line):
        assert parse_stream_line(line) == (False, None)

    def test_error_frame_raises(self):
        line = 'data: ' + json.dumps({'error': {'message': 'Provider overloaded'}})
        with pytest.raises(ModelStreamError, match='Provider overloaded'):
            parse_stream_line(line)


@pytest.mark.unit
class TestOpenRouterClient:

    @pytest.mark.asyncio
    async def test_chat_completion_without_key(self):
        success, data, status = await OpenRouterClient(api_key='').chat_completion(
            model='openai/gpt-4o-mini', messages=[{'role': 'user', 'content': 'hi'}],
        )
        assert success is False
        assert status == 401
        assert data['error'] == 'API key not configured'

    @pytest.mark.asyncio
    async def test_chat_completion_with_open_circuit(self):
        breaker = get_openrouter_breaker()
        for _ in range(breaker.config.failure_threshold):
            breaker.record_failure()

        success, data, status = await OpenRouterClient(api_key='sk-test').chat_completion(
            model='openai/gpt-4o-mini', messages=[],
        )
        assert success is False
        assert status == 503
        assert data['circuit_open'] is True

    @pytest.mark.asyncio
    async def test_stream_without_key_raises(self):
        stream = OpenRouterClient(api_key='').stream_chat_completion('m', [])
        with pytest.raises(ModelStreamError) as exc_info:
            await stream.__anext__()
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_stream_with_open_circuit_raises(self):
        breaker = get_openrouter_breaker()
        for _ in range(breaker.config.failure_threshold):
            breaker.record_failure()

        stream = OpenRouterClient(api_key='sk-test').stream_chat_completion('m', [])
        with pytest.raises(ModelStreamError, match='Circuit breaker open') as exc_info:
            await stream.__anext__()
        assert exc_info.value.status_code == 503
