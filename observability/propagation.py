"""
Trace Context Propagation

Moves a SpanContext across process boundaries through an explicit carrier:
a plain mapping of header names to header values. Uses the W3C Trace Context
`traceparent` header (version 00) and the W3C `baggage` header.

inject() writes into the carrier of an outbound request.
extract() reads the carrier of an inbound request; anything malformed
yields None so the callee starts a new root trace instead of failing.
"""

import re
from typing import Mapping, MutableMapping, Optional
from urllib.parse import quote, unquote

from observability.trace import SpanContext


TRACEPARENT_HEADER = "traceparent"
BAGGAGE_HEADER = "baggage"

_TRACEPARENT_PATTERN = re.compile(
    r"([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})(-.*)?"
)
_INVALID_TRACE_ID = "0" * 32
_INVALID_SPAN_ID = "0" * 16
_SAMPLED_FLAG = 0x01


def _lookup(carrier: Mapping[str, str], key: str) -> Optional[str]:
    value = carrier.get(key)
    if value is not None:
        return value
    # Plain dicts are case-sensitive, HTTP header names are not
    for name, candidate in carrier.items():
        if name.lower() == key:
            return candidate
    return None


def format_traceparent(context: SpanContext) -> str:
    flags = _SAMPLED_FLAG if context.sampled else 0
    return f"00-{context.trace_id}-{context.span_id}-{flags:02x}"


def parse_traceparent(value: str) -> Optional[SpanContext]:
    match = _TRACEPARENT_PATTERN.fullmatch(value.strip())
    if match is None:
        return None
    version, trace_id, span_id, flags, rest = match.groups()
    if version == "ff":
        return None
    # Version 00 has exactly four fields
    if version == "00" and rest:
        return None
    if trace_id == _INVALID_TRACE_ID or span_id == _INVALID_SPAN_ID:
        return None
    return SpanContext(
        trace_id=trace_id,
        span_id=span_id,
        sampled=bool(int(flags, 16) & _SAMPLED_FLAG),
    )


def format_baggage(baggage: Mapping[str, str]) -> str:
    return ",".join(f"{quote(key, safe='')}={quote(value, safe='')}" for key, value in baggage.items())


def parse_baggage(value: str) -> dict:
    baggage = {}
    for member in value.split(","):
        # Member properties (";key=value") are dropped
        entry = member.split(";", 1)[0].strip()
        if "=" not in entry:
            continue
        key, item = entry.split("=", 1)
        key = unquote(key.strip())
        if key:
            baggage[key] = unquote(item.strip())
    return baggage


def inject(context: SpanContext, carrier: MutableMapping[str, str]) -> MutableMapping[str, str]:
    """
    Write the span context into carrier and return it.

    Args:
        context: Context of the client-side span wrapping the outbound call.
        carrier: Outbound header mapping; modified in place.
    """
    carrier[TRACEPARENT_HEADER] = format_traceparent(context)
    if context.baggage:
        carrier[BAGGAGE_HEADER] = format_baggage(context.baggage)
    return carrier


def extract(carrier: Mapping[str, str]) -> Optional[SpanContext]:
    """
    Read a remote parent context from carrier.

    Returns:
        The caller's SpanContext, or None if absent or malformed.
    """
    raw = _lookup(carrier, TRACEPARENT_HEADER)
    if not raw:
        return None
    context = parse_traceparent(raw)
    if context is None:
        return None
    raw_baggage = _lookup(carrier, BAGGAGE_HEADER)
    if raw_baggage:
        context = SpanContext(
            trace_id=context.trace_id,
            span_id=context.span_id,
            sampled=context.sampled,
            baggage=parse_baggage(raw_baggage),
        )
    return context
