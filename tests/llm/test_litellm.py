# test_litellm.py

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from thinking_frameworks.cancellation import CancellationToken, OperationCancelledError
from thinking_frameworks.llm.exceptions import LLMAPIError, NoCompletionError
from thinking_frameworks.llm.litellm import LiteLLM
from thinking_frameworks.models import Usage

MESSAGES = [{"role": "user", "content": "Hello"}]


class ProviderError(Exception):
    def __init__(self, status_code, message=""):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _response(content="  Mocked response content  ", finish_reason="stop", usage=None):
    usage = usage or SimpleNamespace(prompt_tokens=7, completion_tokens=3, total_tokens=10)
    choice = SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)
    return SimpleNamespace(choices=[choice], usage=usage)


class TestLiteLLM:
    # Tests default initialisation of LLM service with default model from environment variable
    @patch("os.getenv")
    def test_env_model_used(self, mock_getenv):
        mock_getenv.return_value = "gpt-4o"
        svc = LiteLLM()
        assert svc.model == "gpt-4o"

    # Tests initialisation of LLM service with an explicit model
    def test_model_parameter_override(self):
        svc = LiteLLM(model="gemini/gemini-2.0-flash")
        assert svc.model == "gemini/gemini-2.0-flash"

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests completion method passes credential, model and sampling params through
    def test_completion(self, mock_acompletion):
        mock_acompletion.return_value = _response()
        svc = LiteLLM(model="gpt-4o-mini")

        result = asyncio.run(
            svc.completion(MESSAGES, credential="sk-test", model="gpt-4o", temperature=0.7, max_tokens=256)
        )

        assert result.text == "Mocked response content"
        assert result.finish_reason == "stop"
        assert result.truncated is False
        assert result.usage == Usage(prompt_tokens=7, completion_tokens=3, total_tokens=10)
        mock_acompletion.assert_awaited_once_with(
            model="gpt-4o",
            messages=MESSAGES,
            temperature=0.7,
            max_tokens=256,
            api_key="sk-test",
        )

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests api_key is omitted when no credential is given
    def test_completion_without_credential(self, mock_acompletion):
        mock_acompletion.return_value = _response()
        asyncio.run(LiteLLM(model="gpt-4o-mini").completion(MESSAGES))
        assert "api_key" not in mock_acompletion.await_args.kwargs

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests transient statuses are retried until success
    def test_retries_transient_status(self, mock_acompletion):
        mock_acompletion.side_effect = [ProviderError(429), ProviderError(503), _response("ok")]
        svc = LiteLLM(model="m", base_delay=0.001)

        result = asyncio.run(svc.completion(MESSAGES))

        assert result.text == "ok"
        assert mock_acompletion.await_count == 3

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests exhausted retries raise the last error after four attempts
    def test_exhausted_retries_raise_last_error(self, mock_acompletion):
        mock_acompletion.side_effect = ProviderError(500)
        svc = LiteLLM(model="m", base_delay=0.001)

        with pytest.raises(LLMAPIError) as info:
            asyncio.run(svc.completion(MESSAGES))

        assert mock_acompletion.await_count == 4
        assert info.value.status_code == 500
        assert "attempt 4/4" in str(info.value)

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests a client without retries raises on its only attempt, chained to the provider error
    def test_no_retries_raises_first_transient_error(self, mock_acompletion):
        mock_acompletion.side_effect = ProviderError(503)
        svc = LiteLLM(model="m", max_retries=0, base_delay=0.001)

        with pytest.raises(LLMAPIError) as info:
            asyncio.run(svc.completion(MESSAGES))

        assert mock_acompletion.await_count == 1
        assert info.value.status_code == 503
        assert "attempt 1/1" in str(info.value)
        assert isinstance(info.value.__cause__, ProviderError)

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests backoff doubles from the base delay
    def test_backoff_doubles(self, mock_acompletion):
        mock_acompletion.side_effect = ProviderError(502)
        svc = LiteLLM(model="m", base_delay=0.5)
        delays = []

        async def fake_sleep(self, delay):
            delays.append(delay)

        with patch.object(CancellationToken, "sleep", fake_sleep):
            with pytest.raises(LLMAPIError):
                asyncio.run(svc.completion(MESSAGES))

        assert delays == [0.5, 1.0, 2.0]

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests non-retryable statuses fail immediately with the provider message
    def test_non_retryable_fails_immediately(self, mock_acompletion):
        mock_acompletion.side_effect = ProviderError(401, "Incorrect API key provided")

        with pytest.raises(LLMAPIError) as info:
            asyncio.run(LiteLLM(model="m", base_delay=0.001).completion(MESSAGES))

        assert mock_acompletion.await_count == 1
        assert info.value.status_code == 401
        assert str(info.value) == "Incorrect API key provided"

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests a missing message body is fatal
    def test_missing_message_raises_no_completion(self, mock_acompletion):
        mock_acompletion.return_value = SimpleNamespace(choices=[], usage=None)

        with pytest.raises(NoCompletionError):
            asyncio.run(LiteLLM(model="m").completion(MESSAGES))

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests a length finish reason is accepted and flagged
    def test_length_finish_reason_flagged(self, mock_acompletion):
        mock_acompletion.return_value = _response("partial", finish_reason="length")

        result = asyncio.run(LiteLLM(model="m").completion(MESSAGES))

        assert result.text == "partial"
        assert result.truncated is True

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests usage falls back to zeros and computes a missing total
    def test_usage_fallbacks(self, mock_acompletion):
        mock_acompletion.return_value = _response(usage={"input_tokens": 4, "output_tokens": 6})

        result = asyncio.run(LiteLLM(model="m").completion(MESSAGES))

        assert result.usage == Usage(prompt_tokens=4, completion_tokens=6, total_tokens=10)

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests an already-cancelled token stops the call before any attempt
    def test_cancelled_before_attempt(self, mock_acompletion):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            asyncio.run(LiteLLM(model="m").completion(MESSAGES, cancellation=token))

        mock_acompletion.assert_not_called()

    # Tests cancellation while the request is in flight fails fast and is not retried
    def test_cancelled_in_flight(self):
        token = CancellationToken()
        calls = []

        async def slow_completion(**kwargs):
            calls.append(kwargs)
            token.cancel()
            await asyncio.sleep(10)

        with patch("thinking_frameworks.llm.litellm.litellm.acompletion", new=slow_completion):
            with pytest.raises(OperationCancelledError):
                asyncio.run(LiteLLM(model="m", base_delay=0.001).completion(MESSAGES, cancellation=token))

        assert len(calls) == 1

    @patch("thinking_frameworks.llm.litellm.litellm.acompletion", new_callable=AsyncMock)
    # Tests cancellation during the backoff wait
    def test_cancelled_during_backoff(self, mock_acompletion):
        token = CancellationToken()

        def fail_and_cancel(**kwargs):
            token.cancel()
            raise ProviderError(503)

        mock_acompletion.side_effect = fail_and_cancel

        with pytest.raises(OperationCancelledError):
            asyncio.run(LiteLLM(model="m", base_delay=5).completion(MESSAGES, cancellation=token))

        assert mock_acompletion.await_count == 1
