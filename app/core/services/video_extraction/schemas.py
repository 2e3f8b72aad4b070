from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class ExtractionRequest(BaseModel):
    """A single queued request to resolve a page's direct video URL."""

    model_config = ConfigDict(frozen=True)

    target_url: str = Field(description='Page URL suspected of hosting a video')
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ExtractionResult(BaseModel):
    """Direct media URL plus the session context needed to fetch it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_agent: str = Field(alias='userAgent', description='User agent the page was loaded with')
    cookie_header: str = Field(alias='cookie', description='Cookies joined as "name=value; name=value"')
    referer: str = Field(description='Final page URL after redirects')
    download_url: str = Field(alias='downloadUrl', description='Direct media URL')


class QueueStatus(BaseModel):
    """Read-only snapshot of the dispatcher."""

    model_config = ConfigDict(populate_by_name=True)

    queue_length: int = Field(alias='queueLength', description='Requests waiting to be processed')
    is_processing: bool = Field(alias='isProcessing')
    currently_processing: str | None = Field(None, alias='currentlyProcessing')


class ProbeResult(BaseModel):
    """Outcome of the in-page interaction probe."""

    model_config = ConfigDict(populate_by_name=True)

    actions: list[str] = Field(default_factory=list)
    video_src: str | None = Field(None, alias='videoSrc')
