"""Request executor: routing, transport and the CodingApiClient facade."""

from .client import HEALTH_CHECK_ACTION, CodingApiClient
from .models import BatchRequest, BatchResult, HealthStatus, RequestOptions
from .routing import MODULE_RULES, READ_ONLY_PREFIXES, UNKNOWN_MODULE, is_read_only_action, module_for_action
from .transport import Transport

__all__ = [
    "CodingApiClient", "HEALTH_CHECK_ACTION",
    "BatchRequest", "BatchResult", "HealthStatus", "RequestOptions",
    "MODULE_RULES", "READ_ONLY_PREFIXES", "UNKNOWN_MODULE", "is_read_only_action", "module_for_action",
    "Transport",
]
