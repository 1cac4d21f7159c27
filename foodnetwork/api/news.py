from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload
from typing import List

from foodnetwork.database import get_db
from foodnetwork.models.news import News
from foodnetwork.schemas.news import NewsResponse

router = APIRouter(prefix="/news", tags=["News"])


@router.get(
    "/",
    response_model=List[NewsResponse],
    summary="List published news"
)
def list_news(db: Session = Depends(get_db)):
    """Published articles, newest first."""
    articles = (
        db.query(News)
        .options(joinedload(News.author))
        .filter(News.published.is_(True))
        .order_by(News.created_at.desc(), News.id.desc())
        .all()
    )
    return [
        NewsResponse(
            id=article.id,
            title=article.title,
            content=article.content,
            author_name=article.author.name if article.author else None,
            created_at=article.created_at,
        )
        for article in articles
    ]
