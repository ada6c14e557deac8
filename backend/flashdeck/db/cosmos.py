"""
Cosmos DB client and connection management.

Two containers are used, both partitioned by ``/userId``:
- decks: one document per deck, cards embedded in study order
- statuses: one document per (deck, user) holding the card status map

Authentication modes:
1. Cosmos DB Emulator (COSMOS_EMULATOR=true): well-known emulator key
2. Otherwise DefaultAzureCredential (Managed Identity in Azure, `az login` locally)
"""

import os
import logging
from functools import lru_cache
from azure.cosmos import CosmosClient, DatabaseProxy, ContainerProxy
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.identity import DefaultAzureCredential

logger = logging.getLogger(__name__)

# Cosmos DB Emulator well-known key (public, not a secret)
# https://learn.microsoft.com/en-us/azure/cosmos-db/emulator#authentication
EMULATOR_KEY = "C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw=="
EMULATOR_ENDPOINT = "https://localhost:8081"


class CosmosDBSettings:
    """Settings for Cosmos DB connection."""

    def __init__(self):
        self.endpoint = os.getenv("COSMOS_ENDPOINT", "")
        self.database_name = os.getenv("COSMOS_DB_NAME", "flashdeck")
        self.decks_container = os.getenv("COSMOS_DECKS_CONTAINER", "decks")
        self.status_container = os.getenv("COSMOS_STATUS_CONTAINER", "statuses")
        self.use_emulator = os.getenv("COSMOS_EMULATOR", "false").lower() == "true"

    def is_configured(self) -> bool:
        """Check if Cosmos DB is configured."""
        if self.use_emulator:
            return True
        return bool(self.endpoint)


@lru_cache()
def get_settings() -> CosmosDBSettings:
    """Get cached Cosmos DB settings."""
    return CosmosDBSettings()


_client: CosmosClient | None = None
_database: DatabaseProxy | None = None


def get_client() -> CosmosClient:
    """Get or create the Cosmos DB client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.is_configured():
            raise RuntimeError(
                "Cosmos DB is not configured. "
                "Set COSMOS_ENDPOINT environment variable, or COSMOS_EMULATOR=true for local emulator."
            )

        if settings.use_emulator:
            logger.info("Using Cosmos DB Emulator at %s", EMULATOR_ENDPOINT)
            _client = CosmosClient(
                EMULATOR_ENDPOINT,
                credential=EMULATOR_KEY,
                connection_verify=False,  # Emulator uses self-signed cert
            )
        else:
            logger.info("Using DefaultAzureCredential for Cosmos DB at %s", settings.endpoint)
            _client = CosmosClient(settings.endpoint, credential=DefaultAzureCredential())

    return _client


def get_database() -> DatabaseProxy:
    """Get or create the database proxy."""
    global _database
    if _database is None:
        settings = get_settings()
        _database = get_client().get_database_client(settings.database_name)
    return _database


def get_container(container_name: str) -> ContainerProxy:
    """Get a container proxy by name."""
    return get_database().get_container_client(container_name)


def get_decks_container() -> ContainerProxy:
    """Get the decks container."""
    return get_container(get_settings().decks_container)


def get_status_container() -> ContainerProxy:
    """Get the card status container."""
    return get_container(get_settings().status_container)


def verify_connection() -> bool:
    """Verify the Cosmos DB connection is working."""
    try:
        if not get_settings().is_configured():
            return False
        get_database().read()
        return True
    except CosmosHttpResponseError as e:
        logger.warning(f"Cosmos DB connection check failed: {e.message}")
        return False
    except Exception as e:
        logger.warning(f"Cosmos DB connection check failed: {e}")
        return False


def close_client():
    """Drop the cached client and database references."""
    global _client, _database
    _client = None
    _database = None
