from .tenant import TenantContext, get_tenant_context, resolve_tenant

__all__ = ["TenantContext", "get_tenant_context", "resolve_tenant"]
