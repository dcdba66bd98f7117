"""Schemas for the query endpoint. Field names follow the front-end's query object."""

from pydantic import BaseModel, ConfigDict, Field


class FileItem(BaseModel):
    """One query item: free text or a media reference returned by a previous item upload."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., alias="Type", description="Item kind, e.g. Text, ImageType, SoundType, Sketch.")
    real_type: str = Field("", alias="RealType", description="Secondary type tag, e.g. the MIME type.")
    name: str = Field("", description="Display name.")
    content: str = Field("", alias="Content", description="Literal text for Text items, otherwise the content URI.")

    @property
    def is_text(self) -> bool:
        return self.type == "Text"


class Emotion(BaseModel):
    name: str
    intensity: float | str


class QueryRequest(BaseModel):
    """Request body for POST /query."""

    model_config = ConfigDict(populate_by_name=True)

    file_items: list[FileItem] = Field(default_factory=list, alias="fileItems")
    tags: list[str] | None = Field(None, description="Tag recommendations, in order.")
    emotion: Emotion | None = None
    datetime: str | None = Field(None, description="ISO timestamp of the query context, e.g. 2011-06-24T13:45:00.000Z.")
    location: str | None = Field(None, description="Space separated position, e.g. '50.97 11.03 0 0'.")

