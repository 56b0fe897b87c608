# contentboard/db/store.py
"""Storage port: every read and write the auth and sync layers make goes through Store."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contentboard.clock import utcnow
from contentboard.db import token_crypto
from contentboard.db.models import AllowedEmail, ContentPost, Platform, PlatformType, Role, User
from contentboard.errors import ValidationError

_ORDERABLE = {"published_at", "performance_score", "created_at"}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class Store:
    def __init__(self, db: Session):
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    # --- users ---------------------------------------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.google_id == google_id).first()

    def upsert_user(
        self,
        google_id: str,
        email: str,
        name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> User:
        """Create on first login; afterwards refresh profile fields and last_login, never role."""
        now = now or utcnow()
        user = self.get_user_by_google_id(google_id)
        if user:
            user.name = name or user.name
            user.avatar_url = avatar_url or user.avatar_url
            user.last_login = now
            user.updated_at = now
        else:
            user = User(
                google_id=google_id,
                email=normalize_email(email),
                name=name,
                avatar_url=avatar_url,
                role=Role.USER.value,
                created_at=now,
                last_login=now,
                updated_at=now,
            )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    # --- allow-list ----------------------------------------------------
    def get_allowed_email(self, email: str) -> Optional[AllowedEmail]:
        return self.db.query(AllowedEmail).filter(AllowedEmail.email == normalize_email(email)).first()

    def is_email_allowed(self, email: str) -> bool:
        return self.get_allowed_email(email) is not None

    def add_allowed_email(self, email: str, invited_by: Optional[str] = None) -> AllowedEmail:
        normalized = normalize_email(email)
        if "@" not in normalized:
            raise ValidationError(f"Not an email address: {email!r}")
        row = self.get_allowed_email(normalized)
        if row:
            return row
        row = AllowedEmail(email=normalized, invited_by=invited_by)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def remove_allowed_email(self, email: str) -> bool:
        deleted = self.db.query(AllowedEmail).filter(AllowedEmail.email == normalize_email(email)).delete()
        self.db.commit()
        return bool(deleted)

    def list_allowed_emails(self) -> List[AllowedEmail]:
        return self.db.query(AllowedEmail).order_by(AllowedEmail.created_at.desc()).all()

    # --- platforms -----------------------------------------------------
    def get_platform(self, platform_type: str) -> Optional[Platform]:
        return self.db.query(Platform).filter(Platform.type == platform_type).first()

    def list_platforms(self, active_only: bool = False) -> List[Platform]:
        q = self.db.query(Platform)
        if active_only:
            q = q.filter(Platform.is_active.is_(True))
        return q.order_by(Platform.id).all()

    def upsert_platform(
        self,
        platform_type: str,
        credentials: Dict[str, Any],
        display_name: Optional[str] = None,
        is_active: bool = True,
    ) -> Platform:
        try:
            ptype = PlatformType(platform_type)
        except ValueError:
            raise ValidationError(f"Unsupported platform: {platform_type}")
        row = self.get_platform(ptype.value)
        if not row:
            row = Platform(type=ptype.value)
        row.display_name = display_name or row.display_name or ptype.value.capitalize()
        row.is_active = is_active
        row.credentials_encrypted = token_crypto.encrypt_credentials(credentials)
        row.updated_at = utcnow()
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def platform_credentials(self, platform: Platform) -> Dict[str, Any]:
        return token_crypto.decrypt_credentials(platform.credentials_encrypted)

    def mark_platform_synced(self, platform: Platform, at: Optional[datetime] = None) -> Platform:
        platform.last_sync_at = at or utcnow()
        self.db.add(platform)
        self.db.commit()
        self.db.refresh(platform)
        return platform

    # --- content posts -------------------------------------------------
    def get_content_post(self, post_id: int) -> Optional[ContentPost]:
        return self.db.query(ContentPost).filter(ContentPost.id == post_id).first()

    def find_content_post_by_external_id(self, content_id: str) -> Optional[ContentPost]:
        return self.db.query(ContentPost).filter(ContentPost.content_id == content_id).first()

    def update_post_metrics(self, post: ContentPost, metrics: Dict[str, Any], now: Optional[datetime] = None) -> ContentPost:
        post.metrics = dict(metrics)
        post.updated_at = now or utcnow()
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def upsert_content_post(
        self,
        platform: Platform,
        content_id: str,
        title: str,
        content: str,
        media_urls: List[str],
        published_at: Optional[datetime],
        metrics: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> ContentPost:
        """Insert on first sight of content_id; afterwards only metrics/updated_at move."""
        now = now or utcnow()
        existing = self.find_content_post_by_external_id(content_id)
        if existing:
            return self.update_post_metrics(existing, metrics, now)

        post = ContentPost(
            content_id=content_id,
            platform_id=platform.id,
            platform_type=platform.type,
            title=title,
            content=content,
            media_urls=list(media_urls),
            published_at=published_at,
            metrics=dict(metrics),
            created_at=now,
            updated_at=now,
        )
        self.db.add(post)
        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent sync inserted the same content_id first
            self.db.rollback()
            existing = self.find_content_post_by_external_id(content_id)
            if not existing:
                raise
            return self.update_post_metrics(existing, metrics, now)
        self.db.refresh(post)
        return post

    def save_analysis(self, post: ContentPost, analysis: Dict[str, Any], now: Optional[datetime] = None) -> ContentPost:
        post.performance_score = analysis.get("performance_score")
        post.strengths = analysis.get("strengths", [])
        post.weaknesses = analysis.get("weaknesses", [])
        post.recommendations = analysis.get("recommendations", [])
        post.content_structure = analysis.get("content_structure", {})
        post.trend_analysis = analysis.get("trend_analysis", {})
        post.ai_generated_at = now or utcnow()
        post.updated_at = post.ai_generated_at
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def list_content_posts(
        self,
        platform_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: Optional[str] = None,
        descending: bool = True,
        scored_only: bool = False,
    ) -> List[ContentPost]:
        q = self.db.query(ContentPost)
        if platform_type:
            q = q.filter(ContentPost.platform_type == platform_type)
        if scored_only:
            q = q.filter(ContentPost.performance_score.isnot(None))
        if order_by:
            if order_by not in _ORDERABLE:
                raise ValidationError(f"Cannot order by {order_by!r}")
            col = getattr(ContentPost, order_by)
            q = q.order_by(col.desc() if descending else col.asc(), ContentPost.id)
        else:
            q = q.order_by(ContentPost.id)
        if offset:
            q = q.offset(offset)
        if limit:
            q = q.limit(limit)
        return q.all()

    def top_performing_posts(self, limit: int = 5) -> List[ContentPost]:
        return self.list_content_posts(limit=limit, order_by="performance_score", scored_only=True)
