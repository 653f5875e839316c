"""
Exception types raised at ficta's configuration, codec, completion and I/O seams
"""


class FictaError(Exception):
    """Base class for ficta errors"""


class ConfigurationError(FictaError):
    """Startup cannot continue (missing credentials, no usable files)"""


class DirectiveParseError(FictaError):
    """An AI: line could not be parsed; callers fall back to defaults"""

    reason = "Invalid directive line"

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"{self.reason}: {line!r}")


class InvalidFieldCount(DirectiveParseError):
    reason = "Invalid number of fields in line"


class InvalidModelField(DirectiveParseError):
    reason = "Invalid model field in line"


class EmptyModel(DirectiveParseError):
    reason = "Empty model field in line"


class InvalidMaxTokens(DirectiveParseError):
    reason = "Invalid max tokens field in line"


class NegativeMaxTokens(DirectiveParseError):
    reason = "Negative max tokens field in line"


class InvalidTemperature(DirectiveParseError):
    reason = "Invalid temperature field in line"


class TemperatureOutOfRange(DirectiveParseError):
    reason = "Temperature out of range in line"


class InvalidResponseCount(DirectiveParseError):
    reason = "Invalid response count field in line"


class CompletionError(FictaError):
    """Completion service failure with a user-friendly message"""

    def __init__(self, user_message: str, error_type: str, original_error: str = ""):
        self.user_message = user_message
        self.error_type = error_type
        self.original_error = original_error
        super().__init__(user_message)


class FileRewriteError(FictaError):
    """Reading, backing up or overwriting a watched file failed"""

    def __init__(self, path: str, action: str, original_error: Exception):
        self.path = path
        self.action = action
        self.original_error = original_error
        super().__init__(f"Failed to {action} {path}: {original_error}")
