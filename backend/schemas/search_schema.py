# schemas/search_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal

ResourceType = Literal["venue", "tickets", "catering", "supplies", "general"]


class SearchResult(BaseModel):
    title: str
    url: str
    description: str
    source: str = "duckduckgo_search"


class BrowserSearchIn(BaseModel):
    """
    /api/browser-search 입력 스키마
    """
    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    resource_type: Optional[ResourceType] = Field(None, alias="resourceType")
    max_results: Optional[int] = Field(None, alias="maxResults", ge=1, le=20)


class BrowserSearchOut(BaseModel):
    results: List[SearchResult]


class SearchQueryIn(BaseModel):
    message: str = ""


class SearchQueryOut(BaseModel):
    query: str
    original: str
