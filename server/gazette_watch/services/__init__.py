"""Services for Gazette Watch."""

from .cache import CacheEntry, TTLCache
from .companies_house import CompaniesHouseClient
from .gazette import GazetteClient
from .linker import LinkRecord, insert_internal_links

__all__ = [
    "CacheEntry",
    "TTLCache",
    "CompaniesHouseClient",
    "GazetteClient",
    "LinkRecord",
    "insert_internal_links",
]
