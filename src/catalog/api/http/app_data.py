from dataclasses import dataclass

from src.catalog.core.cache import CacheService
from src.catalog.core.services import DbSessionService, RedisService
from src.catalog.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    database_service: DbSessionService
    redis_service: RedisService
    cache_service: CacheService
