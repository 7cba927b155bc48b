from datetime import datetime, timezone
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AnswerMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: str
    documents_found: int = Field(alias="documentsFound")
    timestamp: str = Field(default_factory=utc_timestamp)


class AskResponse(BaseModel):
    answer: str
    metadata: AnswerMetadata


class HealthResponse(BaseModel):
    status: str
    timestamp: str = Field(default_factory=utc_timestamp)
    version: str
    checks: Dict[str, str]
    endpoints: Dict[str, str]
