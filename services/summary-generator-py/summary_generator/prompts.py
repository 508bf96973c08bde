from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PromptStyle(str, Enum):
    DIRECT = "direct"
    NEWSLETTER = "newsletter"


class DecodingConfig(BaseModel):
    """Generation parameters sent with every summarization request."""

    model_config = ConfigDict(frozen=True)

    max_output_tokens: int = Field(130, ge=1)  # around 50 to 100 words
    temperature: float = Field(..., ge=0.0, le=2.0)
    top_p: float = Field(..., gt=0.0, le=1.0)


DIRECT_DECODING = DecodingConfig(temperature=0.7, top_p=1.0)
NEWSLETTER_DECODING = DecodingConfig(temperature=0.4, top_p=0.9)


DIRECT_TEMPLATE = (
    "Please provide a concise one or two sentence summary of this announcement or blog post: {content}"
)

NEWSLETTER_TEMPLATE = (
    "You are writing an entry for a newsletter that announces new features and launches. "
    "Describe what is new in the following announcement or blog post as a short newsletter item.\n"
    "Rules:\n"
    "- Use at most 3 sentences.\n"
    "- Only describe what this announcement introduces; do not describe capabilities that existed before it.\n"
    "- Leave out background and pre-existing context.\n"
    "- Do not add a title, greeting or bullet points.\n\n"
    "Announcement:\n{content}"
)

_TEMPLATES = {
    PromptStyle.DIRECT: DIRECT_TEMPLATE,
    PromptStyle.NEWSLETTER: NEWSLETTER_TEMPLATE,
}

_DECODING = {
    PromptStyle.DIRECT: DIRECT_DECODING,
    PromptStyle.NEWSLETTER: NEWSLETTER_DECODING,
}


def build_prompt(style: PromptStyle, content: str) -> str:
    # str.replace keeps braces inside page text from being read as fields
    return _TEMPLATES[PromptStyle(style)].replace("{content}", content)


def decoding_for(style: PromptStyle) -> DecodingConfig:
    return _DECODING[PromptStyle(style)]
