import enum

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text

from contentboard.clock import utcnow
from contentboard.db.base import Base


class Role(str, enum.Enum):
    VIEWER = "viewer"
    USER = "user"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]


_ROLE_RANK = {Role.VIEWER: 0, Role.USER: 1, Role.ADMIN: 2}


class PlatformType(str, enum.Enum):
    LINKEDIN = "linkedin"
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    google_id = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    name = Column(String(256), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    role = Column(String(16), nullable=False, default=Role.USER.value)
    created_at = Column(DateTime, default=utcnow)
    last_login = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class AllowedEmail(Base):
    __tablename__ = "allowed_emails"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, index=True, nullable=False)  # always lowercase
    invited_by = Column(String(320), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class OAuthState(Base):
    __tablename__ = "oauth_states"
    state = Column(String(128), primary_key=True)
    issued_at = Column(DateTime, nullable=False, index=True)


class Platform(Base):
    __tablename__ = "platforms"
    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(32), unique=True, nullable=False)
    display_name = Column(String(128), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    credentials_encrypted = Column(Text, nullable=False)  # Fernet-encrypted JSON bundle
    last_sync_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ContentPost(Base):
    __tablename__ = "content_posts"
    id = Column(Integer, primary_key=True, index=True)
    content_id = Column(String(256), unique=True, index=True, nullable=False)
    platform_id = Column(Integer, ForeignKey("platforms.id"), nullable=False)
    platform_type = Column(String(32), index=True, nullable=False)
    title = Column(String(512), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    media_urls = Column(JSON, nullable=False, default=list)
    published_at = Column(DateTime, nullable=True)
    metrics = Column(JSON, nullable=False, default=dict)

    # source script the post was produced from
    script_source = Column(String(32), nullable=True)  # 'google_doc' | 'upload'
    script_title = Column(String(512), nullable=True)
    script_content = Column(Text, nullable=True)
    script_url = Column(String(1024), nullable=True)
    script_uploaded_at = Column(DateTime, nullable=True)

    # AI analysis
    performance_score = Column(Float, nullable=True, index=True)
    strengths = Column(JSON, nullable=True)
    weaknesses = Column(JSON, nullable=True)
    recommendations = Column(JSON, nullable=True)
    content_structure = Column(JSON, nullable=True)
    trend_analysis = Column(JSON, nullable=True)
    ai_generated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)
