from .dto import RedeemResetIn, RequestResetIn, ResetRequestedOut
from .service import PasswordResetService, ResetDelivery, log_reset_delivery

__all__ = [
    "PasswordResetService",
    "RedeemResetIn",
    "RequestResetIn",
    "ResetDelivery",
    "ResetRequestedOut",
    "log_reset_delivery",
]
