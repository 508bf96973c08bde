import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import SummaryPipelineError, ValidationError
from .extractor import ContentExtractor
from .logging import JsonLogger
from .schemas import MessageResponse, SummaryResponse, UrlRequest
from .summarizer import SummaryGenerator


METHOD_NOT_ALLOWED = "Method not allowed"
PROCESSING_FAILED = "Failed to process content"


@dataclass
class CoordinatorResponse:
    status_code: int
    payload: Dict[str, Any]


def parse_request(body: Union[bytes, str, None]) -> UrlRequest:
    if body is None or (isinstance(body, (bytes, str)) and not body.strip()):
        raise ValidationError("empty_body")
    try:
        return UrlRequest.model_validate_json(body)
    except PydanticValidationError as e:
        raise ValidationError("invalid_body") from e


class RequestCoordinator:
    """Validates one inbound call and runs extract -> summarize.

    Every failure collapses to a generic 500 for the caller; the error kind
    is only logged. A wrong method is the one distinct outcome (405).
    """

    def __init__(self, extractor: ContentExtractor, generator: SummaryGenerator, logger: JsonLogger) -> None:
        self._extractor = extractor
        self._generator = generator
        self._logger = logger

    async def handle(
        self,
        method: str,
        body: Union[bytes, str, None],
        request_id: Optional[str] = None,
    ) -> CoordinatorResponse:
        log = self._logger.bind(request_id=request_id or uuid.uuid4().hex)
        log.debug("request.received", method=method, body_size=len(body or b""))

        if (method or "").upper() != "POST":
            log.warn("request.method_not_allowed", method=method)
            return CoordinatorResponse(405, MessageResponse(message=METHOD_NOT_ALLOWED).model_dump())

        t0 = time.time()
        url: Optional[str] = None
        try:
            req = parse_request(body)
            url = req.url
            log = log.bind(url=url)
            log.info("request.processing")

            content = await self._extractor.extract(url, logger=log)
            log.debug("request.content_extracted", content_length=len(content))

            summary = await self._generator.summarize(content, logger=log)
            log.debug("request.summary_generated", summary=summary)
        except SummaryPipelineError as e:
            log.error(
                "request.failed",
                stage=e.stage,
                error_type=e.__class__.__name__,
                error=str(e),
                latency_ms=int((time.time() - t0) * 1000),
            )
            return CoordinatorResponse(500, MessageResponse(message=PROCESSING_FAILED).model_dump())
        except Exception as e:
            log.error("request.failed", stage="unknown", error_type=e.__class__.__name__, error=str(e))
            return CoordinatorResponse(500, MessageResponse(message=PROCESSING_FAILED).model_dump())

        log.info("request.completed", latency_ms=int((time.time() - t0) * 1000))
        return CoordinatorResponse(200, SummaryResponse(summary=summary, url=url).model_dump())
