"""
Exception types raised by the event log and replay engine.

Validation of event payloads is left to Pydantic, so malformed events surface
as `pydantic.ValidationError` at construction time.
"""


class UnhandledEventError(TypeError):
    """Raised when the reducer has no clause for an event type."""
    pass
