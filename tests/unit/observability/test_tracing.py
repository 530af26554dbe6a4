"""Tests for the tracing setup and helpers."""

import os
from unittest.mock import MagicMock, patch

import pytest

from assistant_gateway.observability.tracing import (
    ATTR_CATEGORY,
    ATTR_OPERATION,
    SpanCategory,
    add_span_attributes,
    get_tracer,
    setup_tracing,
    trace_facade_call,
)


class TestSpanCategory:
    def test_span_categories_are_strings(self):
        assert SpanCategory.FACADE.value == "facade"
        assert SpanCategory.BROWSER.value == "browser"
        assert SpanCategory.PUSH.value == "push"
        assert SpanCategory.HTTP == "http"

    def test_attribute_keys_defined(self):
        assert ATTR_CATEGORY == "gateway.category"
        assert ATTR_OPERATION == "gateway.operation"


class TestSetupTracing:
    def test_returns_false_without_endpoint(self):
        with patch.dict(os.environ, {}, clear=True):
            assert setup_tracing("test-service") is False

    @patch("assistant_gateway.observability.tracing.HTTPXClientInstrumentor")
    @patch("assistant_gateway.observability.tracing.AsyncioInstrumentor")
    @patch("assistant_gateway.observability.tracing.trace")
    @patch("assistant_gateway.observability.tracing.BatchSpanProcessor")
    @patch("assistant_gateway.observability.tracing.OTLPSpanExporter")
    @patch("assistant_gateway.observability.tracing.TracerProvider")
    def test_returns_true_with_endpoint(
        self,
        mock_provider,
        mock_exporter,
        mock_processor,
        mock_trace,
        mock_asyncio,
        mock_httpx,
    ):
        with patch.dict(os.environ, {"OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4318"}):
            assert setup_tracing("test-service", "1.0.0") is True

        mock_exporter.assert_called_once()
        mock_trace.set_tracer_provider.assert_called_once_with(mock_provider.return_value)
        mock_httpx.return_value.instrument.assert_called_once()
        mock_asyncio.return_value.instrument.assert_called_once()


class TestGetTracer:
    @patch("assistant_gateway.observability.tracing.trace")
    def test_returns_tracer(self, mock_trace):
        mock_tracer = MagicMock()
        mock_trace.get_tracer.return_value = mock_tracer

        assert get_tracer("test.module") is mock_tracer
        mock_trace.get_tracer.assert_called_with("test.module")


class TestTraceFacadeCall:
    @pytest.mark.asyncio
    async def test_decorator_wraps_function(self):
        @trace_facade_call("start_task")
        async def start(task):
            return {"started": task}

        assert await start("x") == {"started": "x"}

    @pytest.mark.asyncio
    async def test_decorator_propagates_errors(self):
        @trace_facade_call("screenshot", category=SpanCategory.BROWSER)
        async def capture():
            raise TimeoutError("too slow")

        with pytest.raises(TimeoutError, match="too slow"):
            await capture()

    def test_decorator_preserves_function_name(self):
        @trace_facade_call("resume")
        async def resume_something():
            return None

        assert resume_something.__name__ == "resume_something"


class TestAddSpanAttributes:
    @patch("assistant_gateway.observability.tracing.trace")
    def test_adds_attributes_to_current_span(self, mock_trace):
        mock_span = MagicMock()
        mock_span.is_recording.return_value = True
        mock_trace.get_current_span.return_value = mock_span

        add_span_attributes({"task.image_count": 2})

        mock_span.set_attribute.assert_called_once_with("task.image_count", 2)

    @patch("assistant_gateway.observability.tracing.trace")
    def test_skips_non_recording_span(self, mock_trace):
        mock_span = MagicMock()
        mock_span.is_recording.return_value = False
        mock_trace.get_current_span.return_value = mock_span

        add_span_attributes({"key": "value"})

        mock_span.set_attribute.assert_not_called()
