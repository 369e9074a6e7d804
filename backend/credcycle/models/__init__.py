from credcycle.models.principal import Principal
from credcycle.models.refresh_record import RefreshRecord
from credcycle.models.reset_record import ResetRecord

__all__ = [
    "Principal",
    "RefreshRecord",
    "ResetRecord",
]
