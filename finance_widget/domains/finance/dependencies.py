from fastapi import Depends

from finance_widget.core.settings import settings
from finance_widget.domains.xero.auth.dependencies import get_token_manager
from finance_widget.domains.xero.auth.service import XeroTokenManager
from finance_widget.shared.cache import ResultCache

from .models import FinanceSummary
from .service import FinanceService

result_cache: ResultCache[FinanceSummary] = ResultCache(settings.CACHE_TTL_SECONDS)


def get_result_cache() -> ResultCache[FinanceSummary]:
    return result_cache


def get_finance_service(
    token_manager: XeroTokenManager = Depends(get_token_manager),
    cache: ResultCache[FinanceSummary] = Depends(get_result_cache),
) -> FinanceService:
    return FinanceService(token_manager, cache)
