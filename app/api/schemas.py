from pydantic import BaseModel, Field


class GetVideoRequest(BaseModel):
    video_url: str | None = Field(None, alias='videoUrl', description='Page URL hosting the video')


class ErrorResponse(BaseModel):
    error: str
