from datetime import datetime
from typing import Optional

from aether.main.models import BaseModel
from aether.tenants.tenant import TenantBinding


class UserAdd(BaseModel):
    email: str
    username: str
    full_name: str = ""


class UserInDB(UserAdd):
    id: str
    personal_tenant_id: Optional[str] = None
    personal_api_key: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_personal_tenant(self) -> bool:
        return bool(self.personal_tenant_id)

    @property
    def personal_tenant(self) -> Optional[TenantBinding]:
        if not self.has_personal_tenant:
            return None

        return TenantBinding(
            tenant_id=self.personal_tenant_id,
            api_key=self.personal_api_key or "",
        )

    def with_personal_tenant(self, binding: TenantBinding) -> "UserInDB":
        return self.model_copy(
            update={
                "personal_tenant_id": binding.tenant_id,
                "personal_api_key": binding.api_key,
            }
        )
