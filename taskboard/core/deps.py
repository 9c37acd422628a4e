from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from taskboard.core.config import settings
from taskboard.core.errors import UnauthorizedError
from taskboard.core.security import access_token_subject
from taskboard.schemas.query import QueryRequest, parse_filters_or_400

bearer = HTTPBearer(auto_error=False)

def get_current_subject(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> UUID:
    if not creds:
        raise UnauthorizedError("Missing authorization token")
    try:
        return access_token_subject(creds.credentials, settings.JWT_SECRET)
    except (JWTError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

def get_list_query(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.DEFAULT_PAGE_LIMIT),
    searchKey: str | None = Query(default=None),
    filters: str | None = Query(default=None),
    sort: str | None = Query(default=None),
) -> QueryRequest:
    return QueryRequest(
        page=page,
        limit=limit,
        search_key=searchKey,
        filters=parse_filters_or_400(filters),
        sort=sort,
    )
