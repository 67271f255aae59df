"""Structural decode errors.

These signal malformed framing. They are raised deep inside the decoders and
caught only at the public entry points, which log them and return ``None``.
Unknown tokens and status codes are not errors (see ``tokens``).
"""


class DecodeError(Exception):
    """Raised when a capture is structurally malformed."""

    pass


class BufferUnderrunError(DecodeError):
    """Raised when a read would run past the end of the buffer."""

    pass


class InvalidListSizeError(DecodeError):
    """Raised when a list-size byte is not one of the list markers."""

    pass


class UnknownWireTypeError(DecodeError):
    """Raised when a protobuf tag carries a wire type we cannot frame."""

    pass


class MalformedVarintError(DecodeError):
    """Raised when a varint does not terminate within 10 bytes."""

    pass


class MaxDepthExceededError(DecodeError):
    """Raised when nesting exceeds the configured depth guard."""

    pass


class MissingFieldError(DecodeError):
    """Raised when a required protobuf field is absent."""

    pass
