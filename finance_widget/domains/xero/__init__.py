from .data_service import XeroDataService
from .query import XeroQuery

__all__ = ["XeroDataService", "XeroQuery"]
