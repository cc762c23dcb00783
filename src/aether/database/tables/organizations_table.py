from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from aether.database.tables.base_class import Base, BasePublic, _now
from aether.organizations.organization import OrganizationVisibility


class Organizations(BasePublic):
    name: Mapped[str] = mapped_column(String)
    slug: Mapped[str] = mapped_column(String, unique=True, index=True)
    description: Mapped[str] = mapped_column(String, default="")
    visibility: Mapped[str] = mapped_column(
        String, default=OrganizationVisibility.PRIVATE.value
    )
    tenant_id: Mapped[Optional[str]] = mapped_column(String)
    tenant_api_key: Mapped[Optional[str]] = mapped_column(String)
    created_by: Mapped[str] = mapped_column(String)


class OrganizationMembers(Base):
    # One membership per (organization, user)
    organization_id: Mapped[str] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    invited_by: Mapped[Optional[str]] = mapped_column(String)
    title: Mapped[Optional[str]] = mapped_column(String)
    department: Mapped[Optional[str]] = mapped_column(String)
