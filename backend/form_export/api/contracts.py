from typing import Literal

from pydantic import BaseModel, Field

ExportFormatChoice = Literal["json", "markdown", "both"]


class ExportRequest(BaseModel):
    form_id: str | None = Field(default=None, max_length=512)
    format: ExportFormatChoice = "both"
    persist: bool = True


class RenderRequest(BaseModel):
    snapshot: dict[str, object]
    format: ExportFormatChoice = "both"


class ArtifactPayload(BaseModel):
    format: str
    file_name: str
    location: str | None = None
    error: str | None = None
    content: str | None = None


class ExportRunPayload(BaseModel):
    form_id: str
    ok: bool
    fetched: bool
    artifacts: list[ArtifactPayload] = Field(default_factory=list)
