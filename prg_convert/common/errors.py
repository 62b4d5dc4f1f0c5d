"""Domain errors and failure typing."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for conversion failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class UnsupportedConfigurationError(ConfigError):
    """Raised for option combinations the converter refuses before streaming."""

    error_code = "UNSUPPORTED_CONFIGURATION"


class MalformedInputError(PipelineError):
    """Raised when a source document cannot be decoded."""

    error_code = "MALFORMED_INPUT"

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        element: str | None = None,
        line: int | None = None,
    ) -> None:
        self.source = source
        self.element = element
        self.line = line
        context = []
        if source:
            context.append(f"source={source}")
        if element:
            context.append(f"element={element}")
        if line is not None:
            context.append(f"line={line}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ResolutionError(PipelineError):
    """Raised when a reference cannot be resolved to a value."""

    error_code = "RESOLUTION_ERROR"


class MissingDictionaryEntryError(ResolutionError):
    error_code = "MISSING_DICTIONARY_ENTRY"

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"TERYT code not found in dictionary: {code!r}")


class OutputWriteError(PipelineError):
    """Raised when the destination cannot be written or finalised."""

    error_code = "OUTPUT_IO_ERROR"


class StageError(PipelineError):
    """Raised for auxiliary stage failures (e.g. downloads)."""

    error_code = "STAGE_ERROR"
