from .dependencies import get_token_manager, token_manager
from .service import XeroTokenManager

__all__ = ["XeroTokenManager", "get_token_manager", "token_manager"]
