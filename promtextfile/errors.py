"""Exception types raised by the textfile tools"""


class TextfileError(Exception):
    """Base class for errors that terminate an invocation"""

    exit_code = 2


class UsageError(TextfileError):
    """Bad or unknown command line flags, help text is shown"""

    exit_code = 1


class ValidationError(TextfileError):
    """Invalid input detected before anything is written"""


class InvalidLabelName(ValidationError):
    pass


class InvalidMetricName(ValidationError):
    pass


class InvalidValue(ValidationError):
    pass


class MissingArgument(ValidationError):
    pass


class PrivilegeError(TextfileError):
    """Setup mode requested without root privileges"""


class AccountLookupError(TextfileError):
    """Setup mode target account does not exist"""


class MeasurementFacilityMissing(TextfileError):
    """No usable way to run and measure a child process"""
