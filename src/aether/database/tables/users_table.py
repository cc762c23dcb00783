from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from aether.database.tables.base_class import BasePublic


class Users(BasePublic):
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    username: Mapped[str] = mapped_column(String, unique=True)
    full_name: Mapped[str] = mapped_column(String, default="")

    # Set once, when the personal tenant is provisioned
    personal_tenant_id: Mapped[Optional[str]] = mapped_column(String, unique=True)
    personal_api_key: Mapped[Optional[str]] = mapped_column(String)
