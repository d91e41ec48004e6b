"""
Test configuration for the listing database
Creates an isolated test database separate from development data
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Prioritize .env.test for tests
env_test_path = Path(__file__).parent.parent / '.env.test'
env_path = Path(__file__).parent.parent / '.env'

if env_test_path.exists():
    load_dotenv(env_test_path)
elif env_path.exists():
    load_dotenv(env_path)

TEST_DB_CONFIG = {
    'host': os.getenv('TEST_DB_HOST', os.getenv('DB_HOST', 'localhost')),
    'port': int(os.getenv('TEST_DB_PORT', os.getenv('DB_PORT', '5432'))),
    'database': os.getenv('TEST_DB_NAME', 'content_listing_test'),
    'user': os.getenv('TEST_DB_USER', os.getenv('DB_USER', 'postgres')),
    'password': os.getenv('TEST_DB_PASSWORD', os.getenv('DB_PASSWORD', '')),
}

# Schema file location
SCHEMA_FILE = Path(__file__).parent.parent / 'schema.sql'
