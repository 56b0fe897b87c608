from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from contentboard.db.models import Platform, Role, User
from contentboard.db.store import Store
from contentboard.deps import get_store, require_role
from contentboard.errors import NotFoundError

router = APIRouter(prefix="/api", tags=["admin"])


class AllowedEmailIn(BaseModel):
    email: str


class PlatformIn(BaseModel):
    credentials: Dict[str, Any]
    display_name: Optional[str] = None
    is_active: bool = True


def platform_payload(p: Platform) -> Dict[str, Any]:
    # credentials never leave the server
    return {
        "type": p.type,
        "displayName": p.display_name,
        "isActive": p.is_active,
        "lastSyncAt": p.last_sync_at.isoformat() if p.last_sync_at else None,
    }


@router.get("/admin/allowed-emails")
def list_allowed(store: Store = Depends(get_store), admin: User = Depends(require_role(Role.ADMIN))) -> List[Dict[str, Any]]:
    return [
        {"email": r.email, "invited_by": r.invited_by, "created_at": r.created_at.isoformat() if r.created_at else None}
        for r in store.list_allowed_emails()
    ]


@router.post("/admin/allowed-emails", status_code=201)
def add_allowed(
    body: AllowedEmailIn,
    store: Store = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
) -> Dict[str, Any]:
    row = store.add_allowed_email(body.email, invited_by=admin.email)
    return {"email": row.email, "invited_by": row.invited_by}


@router.delete("/admin/allowed-emails/{email}", status_code=204)
def remove_allowed(email: str, store: Store = Depends(get_store), admin: User = Depends(require_role(Role.ADMIN))):
    if not store.remove_allowed_email(email):
        raise NotFoundError(f"{email} is not on the allow-list")
    return Response(status_code=204)


@router.get("/platforms")
def list_platforms(store: Store = Depends(get_store), user: User = Depends(require_role(Role.VIEWER))) -> List[Dict[str, Any]]:
    return [platform_payload(p) for p in store.list_platforms()]


@router.put("/admin/platforms/{platform_type}")
def upsert_platform(
    platform_type: str,
    body: PlatformIn,
    store: Store = Depends(get_store),
    admin: User = Depends(require_role(Role.ADMIN)),
) -> Dict[str, Any]:
    row = store.upsert_platform(
        platform_type,
        credentials=body.credentials,
        display_name=body.display_name,
        is_active=body.is_active,
    )
    return platform_payload(row)
