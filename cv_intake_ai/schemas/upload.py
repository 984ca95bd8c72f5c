"""Uploaded file as received by the intake layer."""

from pydantic import BaseModel, Field


class UploadedFile(BaseModel):
    """Raw uploaded document held in memory; declared size may disagree with the bytes."""

    filename: str = Field(default="", description="Client-supplied file name")
    content_type: str = Field(default="", description="Declared MIME type")
    declared_size: int = Field(default=0, description="Size reported by the client")
    data: bytes = Field(default=b"", description="Materialized file bytes")

    @property
    def extension(self) -> str:
        name = (self.filename or "").strip()
        if "." not in name:
            return "bin"
        return name.rsplit(".", 1)[-1].lower() or "bin"
