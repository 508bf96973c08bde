from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar
from urllib.parse import quote

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .config import Config
from .errors import GenerationError, MalformedResponseError
from .prompts import DecodingConfig


# ----------------------------- response shapes -------------------------------------

class CompletionPayload(BaseModel):
    completion: str


class TitanResult(BaseModel):
    output_text: str = Field(alias="outputText")


class ResultsPayload(BaseModel):
    results: List[TitanResult]


class CompletionChoice(BaseModel):
    text: str


class ChoicesPayload(BaseModel):
    choices: List[CompletionChoice]


P = TypeVar("P", bound=BaseModel)


def _load(model: Type[P], body: bytes) -> P:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedResponseError("response_not_utf8") from e
    try:
        return model.model_validate_json(text)
    except PydanticValidationError as e:
        raise MalformedResponseError("response_shape_invalid") from e


# ----------------------------- schema variants --------------------------------------

class ResponseSchema:
    """One backend request/response contract.

    Selected by configuration when the generator is built; the payload shape
    is never sniffed at runtime.
    """

    name = ""

    def encode_request(self, prompt: str, decoding: DecodingConfig) -> Dict[str, Any]:
        raise NotImplementedError

    def decode(self, body: bytes) -> str:
        raise NotImplementedError


class ResultsSchema(ResponseSchema):
    """Titan text models: ``{"results": [{"outputText": ...}]}``."""

    name = "results"

    def encode_request(self, prompt: str, decoding: DecodingConfig) -> Dict[str, Any]:
        return {
            "inputText": prompt,
            "textGenerationConfig": {
                "maxTokenCount": decoding.max_output_tokens,
                "temperature": decoding.temperature,
                "topP": decoding.top_p,
            },
        }

    def decode(self, body: bytes) -> str:
        payload = _load(ResultsPayload, body)
        if not payload.results:
            raise MalformedResponseError("results_empty")
        return payload.results[0].output_text


class CompletionSchema(ResponseSchema):
    """Text-completions contract with a single ``completion`` field."""

    name = "completion"

    def encode_request(self, prompt: str, decoding: DecodingConfig) -> Dict[str, Any]:
        return {
            "prompt": f"\n\nHuman: {prompt}\n\nAssistant:",
            "max_tokens_to_sample": decoding.max_output_tokens,
            "temperature": decoding.temperature,
            "top_p": decoding.top_p,
        }

    def decode(self, body: bytes) -> str:
        return _load(CompletionPayload, body).completion


class ChoicesSchema(ResponseSchema):
    """OpenAI-compatible completions: ``{"choices": [{"text": ...}]}``."""

    name = "choices"

    def encode_request(self, prompt: str, decoding: DecodingConfig) -> Dict[str, Any]:
        return {
            "prompt": prompt,
            "max_tokens": decoding.max_output_tokens,
            "temperature": decoding.temperature,
            "top_p": decoding.top_p,
        }

    def decode(self, body: bytes) -> str:
        payload = _load(ChoicesPayload, body)
        if not payload.choices:
            raise MalformedResponseError("choices_empty")
        return payload.choices[0].text


SCHEMAS: Dict[str, ResponseSchema] = {
    s.name: s for s in (ResultsSchema(), CompletionSchema(), ChoicesSchema())
}


def get_schema(name: str) -> ResponseSchema:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ValueError(f"unknown response schema: {name}") from None


# ----------------------------- backends ---------------------------------------------

class ModelBackend(Protocol):
    async def invoke(self, model_id: str, request: Dict[str, Any]) -> Optional[bytes]:
        """Submit one generation request; return the raw payload or None when empty."""
        ...

    async def aclose(self) -> None:
        ...


class HttpInvokeBackend:
    """Raw JSON invoke endpoint: ``POST {base}/model/{model_id}/invoke``."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def invoke(self, model_id: str, request: Dict[str, Any]) -> Optional[bytes]:
        url = f"{self._base_url}/model/{quote(model_id, safe='')}/invoke"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            resp = await self._client.post(url, json=request, headers=headers)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise GenerationError("timeout") from e
        except httpx.HTTPStatusError as e:
            raise GenerationError(f"status:{e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise GenerationError("request_error") from e
        return resp.content or None

    async def aclose(self) -> None:
        await self._client.aclose()


class OpenAIBackend:
    """OpenAI-compatible completions API, read back as raw bytes."""

    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def invoke(self, model_id: str, request: Dict[str, Any]) -> Optional[bytes]:
        try:
            raw = await self._client.completions.with_raw_response.create(model=model_id, **request)
        except openai.APITimeoutError as e:
            raise GenerationError("timeout") from e
        except openai.APIStatusError as e:
            raise GenerationError(f"status:{e.status_code}") from e
        except openai.APIError as e:
            raise GenerationError("llm_failed") from e
        return raw.content or None

    async def aclose(self) -> None:
        await self._client.close()


def build_backend(cfg: Config) -> ModelBackend:
    """Backend for the configured provider; it owns its transport."""
    if cfg.llm_provider == "openai":
        return OpenAIBackend(
            AsyncOpenAI(
                api_key=cfg.llm_api_key,
                base_url=(cfg.llm_api_base or None),
                timeout=cfg.llm_timeout,
                max_retries=0,
            )
        )
    if cfg.llm_provider == "bedrock":
        return HttpInvokeBackend(
            httpx.AsyncClient(timeout=cfg.llm_timeout),
            base_url=cfg.llm_api_base or "",
            api_key=cfg.llm_api_key or "",
        )
    raise ValueError(f"unknown llm provider: {cfg.llm_provider}")
