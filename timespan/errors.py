"""
Error types raised by timespan.

Every error derives from ``ValueError`` through :class:`TimespanError`, and
keeps the offending input on the instance so callers can report which value
and which pattern(s) were involved.
"""


class TimespanError(ValueError):
    """Base class for errors raised while parsing, formatting or combining values."""


def _describe(patterns):
    return ", ".join(str(pattern) for pattern in patterns)


class MalformedDurationError(TimespanError):
    """A duration literal does not conform to the requested pattern(s)."""

    def __init__(self, text, patterns=(), errors=(), reason=None):
        self.text = text
        self.patterns = tuple(patterns)
        self.errors = tuple(errors)
        if reason is not None:
            message = reason
        elif len(self.patterns) > 1:
            message = "Unparseable duration %r does not conform to any of the specified patterns [%s]" % (
                text, _describe(self.patterns)
            )
        elif self.patterns:
            message = "Unparseable duration %r does not conform to the specified pattern %s" % (
                text, self.patterns[0]
            )
        else:
            message = "Malformed duration: %r" % (text,)
        super().__init__(message)


class MalformedDatetimeError(TimespanError):
    """A datetime string does not conform to the requested pattern(s)."""

    def __init__(self, text, patterns=(), errors=()):
        self.text = text
        self.patterns = tuple(patterns)
        self.errors = tuple(errors)
        if len(self.patterns) > 1:
            message = "Unparseable datetime %r does not conform to any of the specified patterns [%s]" % (
                text, _describe(self.patterns)
            )
        else:
            message = "Unparseable datetime %r does not conform to the specified pattern %s" % (
                text, _describe(self.patterns)
            )
        super().__init__(message)


class MalformedRangeError(TimespanError):
    """A duration range literal is not of the form ``<start>..<end>``."""

    def __init__(self, text):
        self.text = text
        super().__init__("Malformed duration range: %r" % (text,))


class UnknownPatternError(TimespanError):
    """A pattern name does not resolve to any known pattern."""

    def __init__(self, pattern, reason=None):
        self.pattern = pattern
        super().__init__(reason or "Unsupported pattern: %r" % (pattern,))


class UnknownTimeZoneError(TimespanError):
    """A time zone identifier matches none of the supported forms."""

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__("Unknown time zone specified: %r" % (identifier,))


class PrecisionError(TimespanError):
    """A non-integral value was supplied for an integer-only unit."""

    def __init__(self, value, unit):
        self.value = value
        self.unit = unit
        super().__init__("Unsupported decimal precision for %s: %s" % (unit, value))


class InvalidRangeError(TimespanError):
    """The start of a range lies after its end."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__("Range start %s is required to be before range end %s" % (start, end))


class IndeterminateDurationError(TimespanError):
    """A duration carrying years or months was used where a fixed length is needed."""

    def __init__(self, duration):
        self.duration = duration
        super().__init__(
            "Duration %s has years or months and needs a reference instant" % (duration,)
        )


class DurationArithmeticError(TimespanError):
    """Field-wise arithmetic produced month and day fields of opposite sign."""

    def __init__(self, left, right):
        self.left = left
        self.right = right
        super().__init__(
            "Cannot combine %s and %s without a reference instant: "
            "months and days would carry opposite signs" % (left, right)
        )
