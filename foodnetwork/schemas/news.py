from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class NewsResponse(BaseModel):
    """Published news article."""
    id: int
    title: str
    content: str
    author_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
