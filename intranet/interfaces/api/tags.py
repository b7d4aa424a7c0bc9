"""Tag API routes: tag search and popular tags."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from intranet.application.services import page_service
from intranet.core.exceptions import validate_model
from intranet.domain.models.user import User
from intranet.domain.schemas.page import PopularTagsRequest, TagSearchParams
from intranet.interfaces.api.deps import get_current_user
from intranet.interfaces.api.responses import ok
from intranet.interfaces.deps import get_db

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("")
def search_tags(
    query: Optional[str] = Query(None),
    limit: int = Query(20),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = validate_model(TagSearchParams, {"query": query, "limit": limit})
    return ok(page_service.search_tags(db, params.query, params.limit))


@router.post("")
def popular_tags(
    body: Optional[PopularTagsRequest] = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    params = body or PopularTagsRequest()
    return ok(page_service.popular_tags(db, params.limit))
