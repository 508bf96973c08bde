class ConfigError(Exception):
    """Raised when service configuration is missing or invalid."""


class SummaryPipelineError(Exception):
    """Base class for failures while turning a URL into a summary."""

    stage = "pipeline"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(SummaryPipelineError):
    """Inbound request has the wrong method or no usable url."""

    stage = "request"


class FetchError(SummaryPipelineError):
    """Source page could not be retrieved."""

    stage = "extract"


class GenerationError(SummaryPipelineError):
    """Model backend invocation failed (network, throttling, auth)."""

    stage = "generate"


class EmptyResponseError(SummaryPipelineError):
    """Model backend returned no payload at all."""

    stage = "generate"


class MalformedResponseError(SummaryPipelineError):
    """Payload could not be decoded or lacks the generated-text field."""

    stage = "generate"
