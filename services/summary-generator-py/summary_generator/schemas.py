from pydantic import BaseModel, field_validator


class UrlRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def url_non_empty(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("url_empty")
        return v


class SummaryResponse(BaseModel):
    summary: str
    url: str


class MessageResponse(BaseModel):
    message: str
