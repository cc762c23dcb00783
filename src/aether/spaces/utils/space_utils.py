from aether.tenants.tenant import TENANT_ID_PREFIX

SPACE_ID_PREFIX = "space_"


def space_id_from_tenant_id(tenant_id: str) -> str:
    """Derive a personal space id from its tenant id (``tenant_x`` -> ``space_x``)."""
    if not tenant_id.startswith(TENANT_ID_PREFIX):
        return tenant_id

    return SPACE_ID_PREFIX + tenant_id[len(TENANT_ID_PREFIX):]


def tenant_id_from_space_id(space_id: str) -> str:
    """Inverse of ``space_id_from_tenant_id``."""
    if not space_id.startswith(SPACE_ID_PREFIX):
        return space_id

    return TENANT_ID_PREFIX + space_id[len(SPACE_ID_PREFIX):]
