from pydantic import BaseModel


class ReplaceTenantModulesRequest(BaseModel):
    """Full set of modules enabled for the tenant"""

    module_ids: list[str]


class TenantModulesResponse(BaseModel):
    tenant_id: int
    module_ids: list[str]
