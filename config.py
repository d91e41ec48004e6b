"""
Configuration for the listing service
Database connection settings and listing defaults
Environment-aware configuration based on APP_ENV
"""

import os
from dataclasses import dataclass
from typing import Optional, Literal
from pathlib import Path
from dotenv import load_dotenv

# Environment modes
EnvironmentMode = Literal["development", "test", "production"]

_TRUE_VALUES = ("true", "1", "yes")


def load_app_environment(mode: Optional[str] = None) -> str:
    """
    Load environment variables from the appropriate .env file.

    Priority:
    1. Explicit 'mode' argument
    2. APP_ENV environment variable
    3. Default to 'development'

    Loads .env.{mode} if it exists, falling back to .env
    """
    if not mode:
        mode = os.getenv('APP_ENV', 'development')

    base_path = Path(__file__).parent
    env_file = base_path / f'.env.{mode}'

    if env_file.exists():
        # override=False lets variables already set by the host take precedence
        load_dotenv(env_file, override=False)
    elif (base_path / '.env').exists():
        load_dotenv(base_path / '.env', override=False)

    return mode


@dataclass
class DatabaseConfig:
    """PostgreSQL database configuration"""

    host: str
    port: int
    database: str
    user: str
    password: str

    # Connection pool settings
    min_pool_size: int = 2
    max_pool_size: int = 10
    command_timeout: int = 60  # seconds

    ssl_mode: str = "prefer"

    @classmethod
    def from_environment(cls, mode: Optional[EnvironmentMode] = None) -> 'DatabaseConfig':
        """
        Load configuration from environment variables

        Environment variables:
        - APP_ENV: Environment mode (development, test, production)
        - DB_HOST: Database host (default: localhost)
        - DB_PORT: Database port (default: 5432)
        - DB_NAME: Database name (default: content_db)
        - DB_USER: Database user
        - DB_PASSWORD: Database password
        - DB_SSL_MODE: SSL mode (default: prefer in development, require otherwise)

        Args:
            mode: Override environment mode (default: reads from APP_ENV)
        """
        mode = load_app_environment(mode)

        config = cls(
            host=os.getenv('DB_HOST', 'localhost'),
            port=int(os.getenv('DB_PORT', '5432')),
            database=os.getenv('DB_NAME', 'content_db'),
            user=os.getenv('DB_USER', 'postgres'),
            password=os.getenv('DB_PASSWORD', ''),
            ssl_mode=os.getenv('DB_SSL_MODE', 'require' if mode == 'production' else 'prefer'),
            min_pool_size=int(os.getenv('DB_MIN_POOL_SIZE', '2')),
            max_pool_size=int(os.getenv('DB_MAX_POOL_SIZE', '10')),
            command_timeout=int(os.getenv('DB_COMMAND_TIMEOUT', '60')),
        )

        config.validate_safety(mode)

        return config

    def validate_safety(self, mode: str):
        """Ensure configuration is safe for the requested mode"""
        if mode == 'test':
            if 'test' not in self.database:
                raise ValueError(f"SAFETY ERROR: Test mode requested but database is '{self.database}'. Test database must contain 'test'.")
            if 'prod' in self.database:
                raise ValueError(f"SAFETY ERROR: Test mode requested but database '{self.database}' appears to be production.")


@dataclass
class ListingConfig:
    """
    Defaults for paginated listings.

    Environment Variables:
    - LISTING_DEFAULT_LIMIT: Page size when the caller omits limit (default: 10)
    - LISTING_DEFAULT_OFFSET: Offset when the caller omits offset (default: 0)
    - LISTING_SEARCH_CONFIG: Text search configuration for plainto_tsquery, e.g. 'english'
      (default: unset, the server's default_text_search_config applies)
    - LISTING_CONCURRENT_STATEMENTS: Run page and total statements concurrently (default: false)
    """
    default_limit: int = 10
    default_offset: int = 0
    search_config: Optional[str] = None
    concurrent_statements: bool = False

    @classmethod
    def from_environment(cls) -> "ListingConfig":
        load_app_environment()
        return cls(
            default_limit=int(os.getenv("LISTING_DEFAULT_LIMIT", "10")),
            default_offset=int(os.getenv("LISTING_DEFAULT_OFFSET", "0")),
            search_config=os.getenv("LISTING_SEARCH_CONFIG") or None,
            concurrent_statements=os.getenv("LISTING_CONCURRENT_STATEMENTS", "false").lower() in _TRUE_VALUES,
        )
