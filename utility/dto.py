from pydantic import BaseModel


class TranslateRequest(BaseModel):
    text: str
    source_lang: str  # e.g. "Italian"
    target_lang: str  # e.g. "Greek"
    tone: str  # e.g. "formal"


class TranslateResponse(BaseModel):
    translation: str


class ErrorResponse(BaseModel):
    error: str


class DummyResponse(BaseModel):
    userId: int
    id: int
    title: str
    body: str
