from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    tenant_id:              str
    client_id:              str
    client_secret:          Optional[str] = None
    certificate_path:       Optional[str] = None
    certificate_thumbprint: Optional[str] = None
    function_key:           Optional[str] = None     # unset → every call is refused
    query_retry_count:      int   = 10
    query_retry_delay:      float = 0.5
    max_retry_delay:        float = 30.0             # upper bound for Retry-After and back-off
    log_level:              str   = "INFO"
    class Config:
        env_prefix = ""
        env_file   = ".env"

settings = Settings()
