import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from flashdeck.db import get_settings, verify_connection, close_client
from flashdeck.routers import decks_router, cards_router, study_router, quiz_router, seed_router
from flashdeck.auth import get_auth_settings

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    auth_settings = get_auth_settings()

    if auth_settings.enabled:
        if auth_settings.is_configured():
            print("✓ OIDC authentication enabled")
            print(f"  Issuer: {auth_settings.issuer}")
            print(f"  Audience: {auth_settings.audience}")
        else:
            print("⚠ Authentication enabled but not configured (missing AUTH_ISSUER or AUTH_AUDIENCE)")
    else:
        print("⚠ Authentication DISABLED - using X-User-Id header fallback (dev mode)")

    if settings.is_configured():
        if verify_connection():
            print("✓ Connected to Cosmos DB")
        else:
            print("✗ Failed to connect to Cosmos DB - check configuration")
    else:
        print("⚠ Cosmos DB not configured (COSMOS_ENDPOINT not set) - study progress kept in memory")

    yield

    # Shutdown
    close_client()
    print("✓ Cosmos DB connection closed")


app = FastAPI(
    title="Flashdeck API",
    description="Flashcard decks with mastery study rounds and one-shot tests",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
cors_origins = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(decks_router)
app.include_router(cards_router)
app.include_router(study_router)
app.include_router(quiz_router)
app.include_router(seed_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Flashdeck API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/healthz",
            "decks": "/decks",
            "cards": "/decks/{deck_id}/cards",
            "study": "/study/{deck_id}",
            "quiz": "/quiz/{deck_id}",
            "seed": "/seed",
        },
    }


@app.get("/healthz")
async def healthz():
    """Health check endpoint."""
    return {"status": "healthy"}
