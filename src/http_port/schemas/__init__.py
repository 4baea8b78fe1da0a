"""Pydantic schemas for notification payloads and response envelopes."""

from http_port.schemas.envelope import Envelope
from http_port.schemas.request import GetMethod, Method, PostMethod, Request

__all__ = ["Envelope", "GetMethod", "Method", "PostMethod", "Request"]
