# EASY/easy/errors.py


class EasyError(Exception):
    """Base class for errors raised by the EASY runner."""


class EnvironmentFatalError(EasyError):
    """The host cannot run EASY at all (wrong OS, missing tool, no scripts)."""


class NoScriptsFoundError(EnvironmentFatalError):
    """No file in the scripts directory matched a setup suffix."""


class ConfigError(EasyError):
    """The configuration file is missing, unreadable or holds invalid values."""


class SelectionError(EasyError):
    """The checklist answer contained a token that is not a valid option."""
