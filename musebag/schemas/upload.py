"""Schemas for query items relayed to the query formulator."""

from pydantic import BaseModel, ConfigDict, Field


class UploadItem(BaseModel):
    """
    Local file descriptor of an uploaded file or a decoded sketch.

    After distribution, path holds the reference returned by the query formulator
    and originPath the locally servable URL of the original bytes.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "path": "abc123.jpg",
                    "name": "x.jpg",
                    "size": 2048,
                    "type": "image/jpeg",
                    "subtype": "",
                    "originPath": "/tmp/x.jpg",
                }
            ]
        },
    )

    path: str = Field(..., description="Local file path; the external file reference after distribution.")
    name: str = Field(..., description="Declared file name.")
    size: int = Field(0, description="Declared size in bytes.")
    type: str = Field("application/octet-stream", description="MIME type.")
    subtype: str | None = Field(None, description="Optional client-side subtype (e.g. sketch kind).")
    origin_path: str | None = Field(None, alias="originPath", description="Public URL of the original bytes.")

    @property
    def is_distributed(self) -> bool:
        return self.origin_path is not None
