from typing import Any, List, Optional

from pydantic import BaseModel


class StoredFileResponse(BaseModel):
    path: str
    public_url: Optional[str] = None


class FileEntry(BaseModel):
    path: str
    size: Optional[int] = None
    created_at: Optional[str] = None


class FileUrlResponse(BaseModel):
    url: str


class ClientValue(BaseModel):
    value: Any = None


class WishlistResponse(BaseModel):
    items: List[str]
