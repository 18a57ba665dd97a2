"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Report which persistence backend serves dispatch runs."""
    from ...db.supabase import get_supabase_client

    if settings.persistence_backend != "supabase":
        return {"backend": settings.persistence_backend, "configured": True}

    supabase = get_supabase_client()
    if not supabase:
        return {
            "backend": "supabase",
            "configured": False,
            "message": "Supabase not configured. Set DISPATCH_SUPABASE_URL and DISPATCH_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table("couriers").select("id", count="exact").limit(1).execute()
    except Exception as exc:
        return {"backend": "supabase", "configured": True, "connected": False, "error": str(exc)}
    return {"backend": "supabase", "configured": True, "connected": True}
