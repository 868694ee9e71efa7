__version__ = "1.0.0"

from .conf import apply_settings, Settings, SettingValidationError
from .duration import Duration, parse_iso8601

from .errors import (
    TimespanError,
    MalformedDurationError,
    MalformedDatetimeError,
    MalformedRangeError,
    UnknownPatternError,
    UnknownTimeZoneError,
    PrecisionError,
    InvalidRangeError,
    IndeterminateDurationError,
    DurationArithmeticError,
)

# Units and normalization
from .units import DurationUnit, resolve_unit, from_unit, to_unit, to_seconds, normalize

# Duration arithmetic
from .arithmetic import Ordering, add, subtract, negate, multiply, compare

# Duration patterns
from .patterns import (
    parse as parse_duration,
    format as format_duration,
    reformat as reformat_duration,
    coerce as coerce_duration,
)

# Time zones
from .timezone_parser import TimeZoneSpec, resolve_timezone, convert, replace

# Datetimes
from .datetimes import (
    DatetimePattern,
    resolve_pattern,
    parse as parse_datetime,
    emit as emit_datetime,
    format as format_datetime,
    add as add_to_datetime,
    subtract as subtract_from_datetime,
    compare as compare_datetimes,
    within,
    minimum,
    maximum,
    elapsed,
)

from .ranges import DurationRange
