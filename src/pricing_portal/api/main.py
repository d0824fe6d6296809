from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from pricing_portal import __version__
from pricing_portal.api.catalog_api import router as catalog_router
from pricing_portal.api.rules_api import admin_router, user_router
from pricing_portal.api.state import PortalState, get_state
from pricing_portal.errors import RuleStoreError

app = FastAPI(
    title="Pricing Portal API",
    description="Price adjustments for the media pricing portal",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router)
app.include_router(admin_router)
app.include_router(user_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Pricing Portal API Active"}


@app.get("/system/status")
async def get_status(state: PortalState = Depends(get_state)):
    try:
        stats = state.rules_service.get_stats()
    except RuleStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "engine_active": True,
        "rules": stats,
        "cache_entries": len(state.cache),
        "cache_ttl_seconds": state.cache.ttl_seconds,
    }
