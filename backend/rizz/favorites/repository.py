# rizz/favorites/repository.py
# Supabase REST-based favorites store, scoped to the caller's access token

from __future__ import annotations

from typing import Any, Dict, List

from supabase import Client, create_client

from .. import auth
from ..pickup import PickupItem

TABLE = "favorites"


class FavoritesStoreError(Exception):
    pass


def _client_for(access_token: str) -> Client:
    """
    User-scoped client: the anon key plus the user's JWT, so row level
    security applies exactly as it does for the browser.
    """
    if not auth.supabase_configured():
        raise FavoritesStoreError("SUPABASE_URL or SUPABASE_ANON_KEY not configured")
    try:
        sb = create_client(auth.SUPABASE_URL, auth.SUPABASE_ANON_KEY)
        sb.postgrest.auth(access_token)
        return sb
    except Exception as e:
        raise FavoritesStoreError(f"Failed to create Supabase client: {e}") from e


def list_favorites(access_token: str, user_id: str) -> List[Dict[str, Any]]:
    sb = _client_for(access_token)
    try:
        result = (
            sb.table(TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as e:
        raise FavoritesStoreError(f"list_favorites error: {e}") from e
    return result.data if result.data else []


def insert_favorite(access_token: str, user_id: str, item: PickupItem) -> Dict[str, Any]:
    sb = _client_for(access_token)
    data = {
        "user_id": user_id,
        "content": item.text,
        "translation": item.translation or None,
    }
    try:
        result = sb.table(TABLE).insert(data).execute()
    except Exception as e:
        raise FavoritesStoreError(f"insert_favorite error: {e}") from e

    if not result.data:
        raise FavoritesStoreError("insert_favorite returned no row")
    return result.data[0]


def delete_favorite(access_token: str, user_id: str, favorite_id: str) -> int:
    """Delete one of the user's favorites. Returns the number of rows removed."""
    sb = _client_for(access_token)
    try:
        result = (
            sb.table(TABLE)
            .delete()
            .eq("id", favorite_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise FavoritesStoreError(f"delete_favorite error: {e}") from e
    return len(result.data or [])
