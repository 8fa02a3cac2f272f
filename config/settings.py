"""
Configuration management for the timetable generation API.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""
    
    # Application
    app_name: str = "Timetable Generation API"
    app_version: str = "1.0.0"
    
    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False
    
    # Engine
    fallback_max_iterations: int = 10000
    optimizer_max_iterations: int = 100
    optimizer_random_seed: int = 42
    
    # Logging
    log_level: str = "INFO"
    
    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]
    
    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
