"""Fruitstore FastAPI application.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# PROTEAN_ENV selects the config overlay from storefront/domain.toml:
#   - unset/"development" → in-memory providers
#   - "production"        → PostgreSQL at $DATABASE_URL
from storefront.api import create_app
from storefront.domain import storefront

storefront.init()

app = create_app(storefront)
