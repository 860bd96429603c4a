"""
Pydantic schemas for request/response validation.
Field names on the wire are camelCase; Python attributes are snake_case.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Role = Literal["user", "assistant"]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatTurn(BaseModel):
    """Represents a single turn in a conversation."""
    role: Role
    content: str


class UploadResponse(BaseModel):
    message: str = "File uploaded successfully"
    filename: str
    original_name: str = Field(..., alias="originalName")
    filepath: str
    size: int
    type: str
    uploaded_at: str = Field(..., alias="uploadedAt")

    model_config = ConfigDict(populate_by_name=True)


class IndexingRequest(CamelModel):
    """Index a previously uploaded PDF."""
    filepath: str = Field(..., min_length=1, description="Path returned by /upload")
    filename: Optional[str] = Field(None, description="Server filename returned by /upload")


class UrlRequest(CamelModel):
    url: str = Field(..., description="Web page or YouTube URL")


class DeleteRequest(CamelModel):
    """Either key names the collection to drop; `filename` is kept for older clients."""
    filename: Optional[str] = None
    collection_name: Optional[str] = Field(None, alias="collectionName")

    @model_validator(mode="after")
    def _require_name(self):
        if not self.target:
            raise ValueError("filename or collectionName is required")
        return self

    @property
    def target(self) -> str:
        return (self.collection_name or "").strip() or (self.filename or "").strip()


class ChatRequest(CamelModel):
    user_query: str = Field(..., alias="userQuery", min_length=1, description="The question to ask")
    collection_name: str = Field(..., alias="collectionName", min_length=1)
    top_k: Optional[int] = Field(None, alias="topK", ge=1, description="Number of chunks to retrieve")
    history: Optional[List[ChatTurn]] = Field(None, description="Previous conversation turns")

    @model_validator(mode="after")
    def _strip(self):
        self.user_query = self.user_query.strip()
        self.collection_name = self.collection_name.strip()
        if not self.user_query:
            raise ValueError("userQuery must not be blank")
        if not self.collection_name:
            raise ValueError("collectionName must not be blank")
        return self


class ChatResponse(BaseModel):
    result: str
    sources: int
    metadata: Dict[str, Any]
