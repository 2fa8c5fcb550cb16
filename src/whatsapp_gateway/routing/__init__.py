"""
Request routing helpers: tenant resolution and phone normalization.
"""

from whatsapp_gateway.routing.phone import normalize_phone
from whatsapp_gateway.routing.tenant_resolver import TENANT_HEADER, TenantResolver

__all__ = [
    "normalize_phone",
    "TenantResolver",
    "TENANT_HEADER",
]
