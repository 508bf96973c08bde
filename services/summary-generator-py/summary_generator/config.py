import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .errors import ConfigError
from .logging import LEVELS


PROVIDERS = ("bedrock", "openai")
RESPONSE_SCHEMAS = ("results", "completion", "choices")
SUMMARY_STYLES = ("direct", "newsletter")


@dataclass
class Config:
    """Runtime configuration for the summary generator (HTTP API + LLM)."""

    log_level: str
    llm_provider: str
    llm_api_base: Optional[str]
    llm_api_key: Optional[str]
    llm_model: str
    llm_response_schema: str
    llm_timeout: float
    summary_style: str
    host: str
    port: int


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    e = os.environ if env is None else env
    return Config(
        log_level=e.get("LOG_LEVEL", "info").lower(),
        llm_provider=e.get("LLM_PROVIDER", "bedrock").lower(),
        llm_api_base=e.get("LLM_API_BASE") or None,
        llm_api_key=e.get("LLM_API_KEY") or None,
        llm_model=e.get("LLM_MODEL", "amazon.titan-text-express-v1"),
        llm_response_schema=e.get("LLM_RESPONSE_SCHEMA", "results").lower(),
        llm_timeout=float(e.get("LLM_TIMEOUT", "20")),
        summary_style=e.get("SUMMARY_STYLE", "direct").lower(),
        host=e.get("HOST", "0.0.0.0"),
        port=int(e.get("PORT", "8000")),
    )


def validate_config(cfg: Config) -> None:
    """Raise ConfigError listing every missing or invalid setting."""
    problems: List[str] = []

    if not cfg.llm_api_key or not cfg.llm_api_key.strip():
        problems.append("LLM_API_KEY is required")
    if not cfg.llm_model or not cfg.llm_model.strip():
        problems.append("LLM_MODEL is required")

    if cfg.llm_provider not in PROVIDERS:
        problems.append(f"LLM_PROVIDER must be one of {', '.join(PROVIDERS)}, got: {cfg.llm_provider}")
    elif cfg.llm_provider == "bedrock" and not cfg.llm_api_base:
        problems.append("LLM_API_BASE is required for the bedrock provider")

    if cfg.llm_api_base and not cfg.llm_api_base.startswith(("http://", "https://")):
        problems.append(f"LLM_API_BASE must be a valid URL, got: {cfg.llm_api_base}")

    if cfg.llm_response_schema not in RESPONSE_SCHEMAS:
        problems.append(
            f"LLM_RESPONSE_SCHEMA must be one of {', '.join(RESPONSE_SCHEMAS)}, got: {cfg.llm_response_schema}"
        )
    if cfg.summary_style not in SUMMARY_STYLES:
        problems.append(f"SUMMARY_STYLE must be one of {', '.join(SUMMARY_STYLES)}, got: {cfg.summary_style}")

    if cfg.log_level not in LEVELS:
        problems.append(f"LOG_LEVEL must be one of debug, info, warn, error, got: {cfg.log_level}")
    if cfg.llm_timeout <= 0:
        problems.append(f"LLM_TIMEOUT must be > 0, got {cfg.llm_timeout}")
    if not (0 < cfg.port < 65536):
        problems.append(f"PORT must be 1-65535, got {cfg.port}")

    if problems:
        raise ConfigError("; ".join(problems))
