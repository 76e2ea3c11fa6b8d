"""Outbound calls to external news and LLM sources."""

from mediawatch.automation.gateway import ExternalServiceGateway

__all__ = ["ExternalServiceGateway"]
