from .client import PartnerClient
from .keys import date_token, derive_key
from .provisioning import ProvisioningReport, ProvisioningService, ProvisioningTarget

__all__ = [
    "PartnerClient",
    "ProvisioningReport",
    "ProvisioningService",
    "ProvisioningTarget",
    "date_token",
    "derive_key",
]
