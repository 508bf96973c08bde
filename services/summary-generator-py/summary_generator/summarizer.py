import time
from typing import Optional

from .errors import EmptyResponseError, GenerationError, MalformedResponseError
from .logging import JsonLogger
from .model_client import ModelBackend, ResponseSchema
from .prompts import DecodingConfig, PromptStyle, build_prompt, decoding_for


class SummaryGenerator:
    """Turns extracted page text into a short summary via the model backend.

    The prompt template and decoding preset follow ``style``; the response
    contract is fixed by ``schema``. One backend call per summary, no retries.
    """

    def __init__(
        self,
        backend: ModelBackend,
        schema: ResponseSchema,
        model_id: str,
        logger: JsonLogger,
        style: PromptStyle = PromptStyle.DIRECT,
        decoding: Optional[DecodingConfig] = None,
    ) -> None:
        self._backend = backend
        self._schema = schema
        self._model_id = model_id
        self._logger = logger
        self._style = PromptStyle(style)
        self._decoding = decoding or decoding_for(self._style)

    @property
    def style(self) -> PromptStyle:
        return self._style

    @property
    def decoding(self) -> DecodingConfig:
        return self._decoding

    def build_request(self, content: str) -> dict:
        prompt = build_prompt(self._style, content)
        return self._schema.encode_request(prompt, self._decoding)

    async def summarize(self, content: str, logger: Optional[JsonLogger] = None) -> str:
        log = logger or self._logger
        request = self.build_request(content)
        log.info(
            "generate.start",
            model=self._model_id,
            style=self._style.value,
            schema=self._schema.name,
            content_length=len(content),
        )

        t0 = time.time()
        try:
            body = await self._backend.invoke(self._model_id, request)
        except GenerationError as e:
            log.error("generate.failed", kind="backend", model=self._model_id, error=str(e))
            raise
        except Exception as e:
            log.error("generate.failed", kind="backend", model=self._model_id, error=str(e))
            raise GenerationError("Failed to generate summary") from e

        if not body:
            log.error("generate.failed", kind="empty_response", model=self._model_id)
            raise EmptyResponseError("Model returned no payload")

        try:
            text = self._schema.decode(body)
        except MalformedResponseError as e:
            log.error(
                "generate.failed",
                kind="malformed_response",
                model=self._model_id,
                schema=self._schema.name,
                error=str(e),
                body_size=len(body),
            )
            raise

        summary = text.strip()
        log.info(
            "generate.done",
            model=self._model_id,
            latency_ms=int((time.time() - t0) * 1000),
            summary_length=len(summary),
        )
        return summary
