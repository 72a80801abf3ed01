"""Pydantic schemas for inference feature responses.

Request bodies are untyped JSON validated by ``app.validation`` schemas, so
only responses are modelled here.
"""

from pydantic import BaseModel, Field


class ChatResponse(BaseModel):
    """Assistant reply for a chat conversation."""

    reply: str = Field(..., description="Assistant reply text.")
    model: str = Field(..., description="Model id that produced the reply.")


class SummaryResponse(BaseModel):
    """Summary of the submitted text."""

    summary: str = Field(..., description="Sanitized summary text.")
    model: str = Field(..., description="Model id that produced the summary.")


class TranscriptionResponse(BaseModel):
    """Transcript of the submitted audio."""

    text: str = Field(..., description="Transcribed text.")
    model: str = Field(..., description="Model id that produced the transcript.")
