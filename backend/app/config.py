from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./colis_voyageurs.db"
    
    # Days either side of the anchor date searched for candidates
    match_search_radius_days: int = 7
    # Advisory lifetime of a computed match, for downstream caches
    match_cache_ttl_hours: int = 24
    
    batch_default_min_score: float = 70.0
    max_batch_size: int = 50
    
    def model_post_init(self, __context):
        if self.env == "prod" and self.database_url.startswith("sqlite"):
            raise ValueError(
                "Production requires explicit DATABASE_URL (not SQLite)"
            )
    
    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
