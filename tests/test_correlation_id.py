"""
Tests for correlation ID middleware.

This module tests the CorrelationIDMiddleware functionality including
correlation ID generation, header handling, and context variable access.
"""

from unittest.mock import MagicMock

import pytest
from starlette.requests import Request
from starlette.responses import Response

from relay.middlewares.correlation_id import (
    CorrelationIDMiddleware,
    correlation_id,
    get_correlation_id,
    set_correlation_id,
)


def make_request(headers):
    mock_request = MagicMock(spec=Request)
    mock_request.headers = headers
    mock_request.state = MagicMock()
    return mock_request


async def call_next(request):
    return Response(content="test", status_code=200)


class TestCorrelationIDMiddleware:
    """Tests for CorrelationIDMiddleware class."""

    @pytest.mark.asyncio
    async def test_middleware_generates_correlation_id(self):
        """Test that middleware generates correlation ID when not provided."""
        middleware = CorrelationIDMiddleware(app=MagicMock())

        response = await middleware.dispatch(make_request({}), call_next)

        assert len(response.headers["X-Correlation-ID"]) == 8

    @pytest.mark.asyncio
    async def test_middleware_uses_provided_correlation_id(self):
        """Test that middleware uses correlation ID from request header."""
        middleware = CorrelationIDMiddleware(app=MagicMock())
        request = make_request({"X-Correlation-ID": "test-cor"})

        response = await middleware.dispatch(request, call_next)

        assert response.headers["X-Correlation-ID"] == "test-cor"
        assert request.state.request_id == "test-cor"
        assert correlation_id.get() == "test-cor"

    @pytest.mark.asyncio
    async def test_middleware_truncates_long_id(self):
        """Test that provided IDs are cut to 8 characters."""
        middleware = CorrelationIDMiddleware(app=MagicMock())
        request = make_request({"X-Correlation-ID": "0123456789abcdef"})

        response = await middleware.dispatch(request, call_next)

        assert response.headers["X-Correlation-ID"] == "01234567"


class TestCorrelationIDHelpers:
    """Tests for the context helpers used by WebSocket connections."""

    def test_set_correlation_id_truncates(self):
        """Test set_correlation_id stores at most 8 characters."""
        token = correlation_id.set("")

        stored = set_correlation_id("5b1e0c9a-7f3d-4c2e-9d61-1f0a2b3c4d5e")

        assert stored == "5b1e0c9a"
        assert get_correlation_id() == "5b1e0c9a"
        correlation_id.reset(token)

    def test_get_correlation_id_default(self):
        """Test an unset correlation ID reads as an empty string."""
        token = correlation_id.set("")

        assert get_correlation_id() == ""
        correlation_id.reset(token)
