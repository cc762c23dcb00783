import asyncio
from typing import TYPE_CHECKING, Any, Callable

import aiohttp

from aether.main.exceptions import ExternalServiceException
from aether.main.logging import get_logger
from aether.tenants.tenant import TENANT_ID_PREFIX, ProvisionedTenant, TenantSpec

if TYPE_CHECKING:
    from aether.main.config import Settings

logger = get_logger(__name__)


class TenantProvisioner:
    """Client for the external tenant provisioning service.

    Creating a tenant is not idempotent on the provisioner side: every
    successful call yields a new tenant. Callers that may race must
    serialize or reconcile themselves.
    """

    def __init__(self, settings: "Settings", client: Callable[[], aiohttp.ClientSession]):
        self.settings = settings
        self.client = client

    def _url(self, path: str) -> str:
        return f"{self.settings.provisioner_url.rstrip('/')}{self.settings.api_prefix}{path}"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.settings.provisioner_api_key,
        }

    @staticmethod
    def _request_body(spec: TenantSpec) -> dict[str, Any]:
        # The provisioner assigns id and status itself
        return {
            "name": spec.name,
            "display_name": spec.display_name,
            "billing_plan": spec.billing_plan.value,
            "billing_email": spec.contact_email,
            "quotas": spec.quotas,
            "compliance": spec.compliance,
            "settings": spec.settings,
            "contact_info": {
                "admin_email": spec.contact_email,
                "security_email": spec.contact_email,
                "billing_email": spec.contact_email,
                "technical_email": spec.contact_email,
            },
        }

    async def create_tenant(self, spec: TenantSpec) -> ProvisionedTenant:
        try:
            async with self.client().post(
                self._url("/tenants"),
                json=self._request_body(spec),
                headers=self._headers(),
            ) as response:
                if response.status not in (200, 201):
                    body = await response.text()
                    logger.error(
                        "Tenant provisioner returned an error",
                        extra={
                            "tenant_name": spec.name,
                            "status_code": response.status,
                            "response_body": body,
                        },
                    )
                    raise ExternalServiceException(
                        f"Tenant provisioner returned status {response.status}",
                        details={"tenant_name": spec.name, "status_code": response.status},
                    )

                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(
                f"Failed to create tenant {spec.name}: {e}",
                extra={"tenant_name": spec.name},
            )
            raise ExternalServiceException(
                "Failed to create tenant", details={"tenant_name": spec.name}
            ) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        remote_id = data.get("id") if isinstance(data, dict) else None
        if not remote_id:
            raise ExternalServiceException(
                "Tenant provisioner response is missing the tenant id",
                details={"tenant_name": spec.name},
            )

        tenant = ProvisionedTenant(
            tenant_id=f"{TENANT_ID_PREFIX}{remote_id}",
            api_key=data.get("api_key") or self.settings.provisioner_api_key,
            status=data.get("status") or "active",
        )

        logger.info(
            "Tenant created",
            extra={"tenant_name": spec.name, "tenant_id": tenant.tenant_id},
        )
        return tenant

    async def delete_tenant(self, tenant_id: str) -> None:
        # Deletion is reconciled out of band; record the request only
        logger.warning(
            "Tenant deletion requested, leaving it for reconciliation",
            extra={"tenant_id": tenant_id},
        )
