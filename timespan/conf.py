from functools import wraps

default_settings = {
    "DEFAULT_DURATION_PATTERN": "xml",
    "DEFAULT_DATETIME_PATTERN": "datetime",
    "TIMEZONE": "$default",
    "TO_TIMEZONE": None,
}


class Settings:
    """Control and configure default behavior of timespan.

    Currently, supported settings are:

    * `DEFAULT_DURATION_PATTERN`: pattern used when a duration pattern is omitted
    * `DEFAULT_DATETIME_PATTERN`: pattern used when a datetime pattern is omitted
    * `TIMEZONE`: zone attached to naive datetimes and used for "now"
    * `TO_TIMEZONE`: zone datetimes are converted to before being emitted

    Instances are not modified once built; :meth:`replace` returns a new one.
    """

    def __init__(self, settings=None):
        if settings:
            self._updateall(settings.items())
        else:
            self._updateall(default_settings.items())

    def _updateall(self, iterable):
        for key, value in iterable:
            setattr(self, key, value)

    def replace(self, **kwds):
        for key in default_settings:
            kwds.setdefault(key, getattr(self, key))

        return self.__class__(settings=kwds)

    def __repr__(self):
        values = ", ".join("%s=%r" % (key, getattr(self, key)) for key in default_settings)
        return "Settings(%s)" % values


settings = Settings()


def apply_settings(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        kwargs["settings"] = kwargs.get("settings", settings)

        if kwargs["settings"] is None:
            kwargs["settings"] = settings

        if isinstance(kwargs["settings"], dict):
            check_settings(kwargs["settings"])
            kwargs["settings"] = settings.replace(**kwargs["settings"])

        if not isinstance(kwargs["settings"], Settings):
            raise TypeError(
                "settings can only be either dict or instance of Settings class"
            )

        return f(*args, **kwargs)

    return wrapper


class SettingValidationError(ValueError):
    pass


def _check_duration_pattern(setting_name, setting_value):
    from timespan.errors import UnknownPatternError
    from timespan.units import DurationUnit

    try:
        DurationUnit.from_name(setting_value)
    except UnknownPatternError:
        raise SettingValidationError(
            '"{}" is not a valid duration pattern for "{}"'.format(setting_value, setting_name)
        )


def _check_datetime_pattern(setting_name, setting_value):
    from timespan.datetimes import DatetimePattern

    if "%" in setting_value:
        return
    if setting_value not in DatetimePattern.names():
        raise SettingValidationError(
            '"{}" is not a valid datetime pattern for "{}"'.format(setting_value, setting_name)
        )


def _check_timezone(setting_name, setting_value):
    from timespan.errors import UnknownTimeZoneError
    from timespan.timezone_parser import resolve_timezone

    try:
        resolve_timezone(setting_value)
    except UnknownTimeZoneError:
        raise SettingValidationError(
            '"{}" is not a valid time zone for "{}"'.format(setting_value, setting_name)
        )


def check_settings(settings):
    """
    Check if provided settings are valid, if not it raises `SettingValidationError`.
    Only checks for the modified settings.
    """
    settings_values = {
        "DEFAULT_DURATION_PATTERN": {
            "type": str,
            "extra_check": _check_duration_pattern,
        },
        "DEFAULT_DATETIME_PATTERN": {
            "type": str,
            "extra_check": _check_datetime_pattern,
        },
        "TIMEZONE": {
            "type": str,
            "extra_check": _check_timezone,
        },
        "TO_TIMEZONE": {
            "type": str,
            "extra_check": _check_timezone,
            "nullable": True,
        },
    }

    for setting_name, setting_value in settings.items():
        if setting_name not in settings_values:
            raise SettingValidationError(
                '"{}" is not a valid setting'.format(setting_name)
            )

        spec = settings_values[setting_name]
        if setting_value is None and spec.get("nullable"):
            continue

        setting_type = type(setting_value)
        if setting_type is not spec["type"]:
            raise SettingValidationError(
                '"{}" must be "{}", not "{}".'.format(
                    setting_name, spec["type"].__name__, setting_type.__name__
                )
            )

        extra_check = spec.get("extra_check")
        if extra_check:
            extra_check(setting_name, setting_value)
