"""
Full-text search across notes, projects and experiments the caller can read.
"""
from fastapi import APIRouter, Depends, Query

from ...core.logging import get_logger
from ...db.storage import Storage
from ..deps import get_current_user, get_storage, readable_project_ids
from ... import models, schemas

logger = get_logger(__name__)

router = APIRouter(prefix="/api/search", tags=["Search"])


@router.get("", response_model=schemas.SearchResults)
def search(
    q: str = Query(default=""),
    limit: int = Query(default=50, ge=1, le=200),
    storage: Storage = Depends(get_storage),
    current_user: models.User = Depends(get_current_user),
):
    query = q.strip()
    if not query:
        return schemas.SearchResults()

    results = storage.search(query, readable_project_ids(storage, current_user), limit=limit)
    logger.debug(
        f"Search | query: '{query}' | notes: {len(results['notes'])} | projects: {len(results['projects'])} "
        f"| experiments: {len(results['experiments'])} | user: {current_user.email}"
    )
    return results
