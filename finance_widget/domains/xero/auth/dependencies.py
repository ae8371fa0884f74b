from finance_widget.core.credentials import CredentialStore
from finance_widget.core.settings import settings

from .service import XeroTokenManager

# Single owner of the process-wide credential
token_manager = XeroTokenManager(CredentialStore(settings.TOKEN_PATH))


def get_token_manager() -> XeroTokenManager:
    return token_manager
