"""Simple, minimal tracing decorator for strategy runs and LLM calls."""

from __future__ import annotations

from functools import wraps
from inspect import iscoroutinefunction, signature
from typing import Any, Callable, Optional
from contextvars import ContextVar
from dataclasses import fields, is_dataclass
import json
import time

from opentelemetry import trace

TRACER_NAME = "thinking-frameworks"

SECRET_REDACT_KEYS = {"apikey", "credential", "accesstoken", "refreshtoken", "clientsecret",
                      "secret", "password", "authorization", "bearer", "cookie", "privatekey"}


def observe(_fn: Optional[Callable[..., Any]] = None, *, llm: bool = False, root: bool = False) -> Callable[..., Any]:
    """Minimal tracing decorator.

    Usage:
        @observe
        def my_function(): ...

        @observe(llm=True)
        async def completion(self, messages, **kwargs): ...

        @observe(root=True)
        async def run(self, question, options, on_step=None): ...

    - Auto-names spans from function module.qualname
    - Works for plain and ``async def`` callables
    - Records timing, exceptions, basic I/O
    - Tracks token usage when llm=True
    - Aggregates total tokens when root=True
    - Uses the OpenTelemetry API; spans are no-ops until an SDK is configured
    """

    def _decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        module = getattr(fn, "__module__", "") or ""
        qualname = getattr(fn, "__qualname__", fn.__name__)
        span_name = f"{module}.{qualname}" if module else qualname

        if iscoroutinefunction(fn):
            @wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                tracer = trace.get_tracer(TRACER_NAME)
                start_time = time.perf_counter()
                with tracer.start_as_current_span(span_name) as span:
                    token = _start_token_accumulator() if root else None
                    try:
                        _capture_input(span, fn, args, kwargs, llm)
                        result = await fn(*args, **kwargs)
                        _capture_result(span, result, llm)
                        return result
                    except Exception as e:
                        span.record_exception(e)
                        span.set_status(trace.Status(trace.StatusCode.ERROR))
                        raise
                    finally:
                        span.set_attribute("duration_ms", int((time.perf_counter() - start_time) * 1000))
                        if root:
                            _finalize_token_accumulator(span, token)
            return async_wrapper

        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(TRACER_NAME)
            start_time = time.perf_counter()
            with tracer.start_as_current_span(span_name) as span:
                token = _start_token_accumulator() if root else None
                try:
                    _capture_input(span, fn, args, kwargs, llm)
                    result = fn(*args, **kwargs)
                    _capture_result(span, result, llm)
                    return result
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR))
                    raise
                finally:
                    span.set_attribute("duration_ms", int((time.perf_counter() - start_time) * 1000))
                    if root:
                        _finalize_token_accumulator(span, token)

        return wrapper

    # Support both @observe and @observe() forms
    if callable(_fn):
        return _decorate(_fn)
    return _decorate


def _safe_preview(val: Any, max_len: int = 512) -> Any:
    """Create safe preview of any value, redacting secret-looking keys."""
    if val is None or isinstance(val, (bool, int, float)):
        return val
    if isinstance(val, str):
        return val if len(val) <= max_len else val[:max_len] + "..."
    if isinstance(val, dict):
        items = list(val.items())
        preview = {
            str(k): ("<redacted>" if _is_secret(str(k)) else _safe_preview(v, max_len))
            for k, v in items[:20]
        }
        if len(items) > 20:
            preview["..."] = f"{len(items) - 20} more keys"
        return preview
    if isinstance(val, (list, tuple)):
        preview_list = [_safe_preview(v, max_len) for v in list(val)[:20]]
        if len(val) > 20:
            preview_list.append("...")
        return preview_list
    if is_dataclass(val) and not isinstance(val, type):
        return _safe_preview({f.name: getattr(val, f.name) for f in fields(val)}, max_len)
    return repr(val)[:max_len]


def _is_secret(key: str) -> bool:
    return key.lower().replace("_", "").replace("-", "") in SECRET_REDACT_KEYS


def _capture_input(span: Any, fn: Callable, args: tuple, kwargs: dict, llm: bool) -> None:
    """Capture function inputs with smart previews and redaction."""
    try:
        bound = signature(fn).bind_partial(*args, **kwargs)

        # LLM path: capture messages only (longer cap for prompt visibility)
        if llm:
            messages = bound.arguments.get("messages")
            if messages:
                msg_str = json.dumps(messages, ensure_ascii=False, separators=(",", ":"))
                span.set_attribute("input", msg_str[:12288])
            return

        inputs = {name: _safe_preview(value) for name, value in bound.arguments.items()
                  if name not in {"self", "cls", "on_step"}}
        input_str = json.dumps(inputs, ensure_ascii=False, separators=(",", ":"), default=str)
        span.set_attribute("input", input_str[:6144] + ("..." if len(input_str) > 6144 else ""))
    except (TypeError, ValueError):
        pass


def _capture_result(span: Any, result: Any, llm: bool) -> None:
    """Capture outputs; LLM responses also feed the root token counter."""
    usage = getattr(result, "usage", None)
    if llm:
        span.set_attribute("output", str(getattr(result, "text", result))[:8192])
        total = getattr(usage, "total_tokens", None)
        if isinstance(total, int):
            span.set_attribute("tokens.prompt", usage.prompt_tokens)
            span.set_attribute("tokens.completion", usage.completion_tokens)
            span.set_attribute("tokens.total", total)
            _accumulate_tokens(total)
        return

    if hasattr(result, "answer"):
        span.set_attribute("output", str(result.answer or getattr(result, "error", "") or "")[:8192])
        llm_calls = getattr(result, "llm_calls", None)
        if isinstance(llm_calls, int):
            span.set_attribute("llm_calls", llm_calls)
    else:
        span.set_attribute("output", str(result)[:8192])


# ── Token Accumulation ──────────────────────────────────────────────────────
# Root spans start a token counter; child LLM calls increment it; root finalizes total.
# Each asyncio task gets a copy of the context, so concurrent strategies count separately.

_tokens: ContextVar[Optional[list[int]]] = ContextVar("tokens", default=None)


def _start_token_accumulator() -> Any:
    """Initialize token counter for root span."""
    if _tokens.get() is None:
        return _tokens.set([0])
    return None


def _accumulate_tokens(token_count: int) -> None:
    """Add tokens from an LLM call."""
    counter = _tokens.get()
    if counter is not None:
        counter[0] += token_count


def _finalize_token_accumulator(span: Any, token: Any) -> None:
    """Write total tokens to root span and reset."""
    if token is None:
        return
    counter = _tokens.get()
    if counter and counter[0] > 0:
        span.set_attribute("tokens.total", counter[0])
    _tokens.reset(token)
