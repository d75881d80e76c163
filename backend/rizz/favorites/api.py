# rizz/favorites/api.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from ..auth import require_user
from ..pickup import PickupItem
from ..schemas import FavoriteCreateInput
from .repository import FavoritesStoreError, delete_favorite, insert_favorite, list_favorites

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


@router.get("")
def get_favorites(request: Request):
    """All favorites of the signed-in user, newest first."""
    user = require_user(request)
    try:
        return list_favorites(user.access_token, user.id)
    except FavoritesStoreError as e:
        print(f"[favorites] Error fetching favorites: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch favorites")


@router.post("")
def save_favorite(payload: FavoriteCreateInput, request: Request):
    content = (payload.content or "").strip()
    if not content:
        raise HTTPException(status_code=400, detail="Content is required")

    user = require_user(request)
    print(f"[favorites] Saving favorite for user: {user.id}")

    item = PickupItem(text=content, translation=(payload.translation or "").strip())
    try:
        return insert_favorite(user.access_token, user.id, item)
    except FavoritesStoreError as e:
        print(f"[favorites] Error saving favorite: {e}")
        raise HTTPException(status_code=500, detail="Failed to save favorite")


@router.delete("")
def remove_favorite(request: Request, id: Optional[str] = None):
    favorite_id = (id or "").strip()
    if not favorite_id:
        raise HTTPException(status_code=400, detail="Favorite ID is required")

    user = require_user(request)
    try:
        delete_favorite(user.access_token, user.id, favorite_id)
    except FavoritesStoreError as e:
        print(f"[favorites] Error deleting favorite: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete favorite")
    return {"success": True}
