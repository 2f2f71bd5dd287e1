from typing import Literal, Optional

from pydantic import BaseModel


class NavigateResult(BaseModel):
    """Outcome of one pipeline run, before it is shaped into an HTTP response."""

    url: str
    title: Optional[str] = None
    body: str
    content_type: Literal["html", "markdown"]
    artifact_uri: Optional[str] = None
    html_file_path: Optional[str] = None


class StructuredResponse(BaseModel):
    url: str
    title: Optional[str] = None
    body: str
    artifact_uri: Optional[str] = None
    html_file_path: Optional[str] = None


class ArtifactResponse(BaseModel):
    artifact_uri: Optional[str] = None
    html_file_path: Optional[str] = None
    html_body: str
