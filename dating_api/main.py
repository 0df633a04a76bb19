from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, PyMongoError

from dating_api import config
from dating_api.auth import get_current_user
from dating_api.coordinator import SwipeCoordinator
from dating_api.database import Database
from dating_api.dependencies import get_coordinator, get_directory, get_feed, get_match_store
from dating_api.directory import UserDirectory
from dating_api.errors import DatingAPIError, StorageUnavailable
from dating_api.feed import CandidateFeedSelector
from dating_api.logger import logger
from dating_api.matches import MatchStore
from dating_api.profiles import public_profile
from dating_api.schemas import (
    CandidatePage,
    CompatibilityResponse,
    DetailedMatchView,
    DiscoverResponse,
    LikedUser,
    MatchView,
    ReceivedLike,
    SwipeRequest,
    SwipeResult,
    SwipeStats,
    User,
)
from dating_api.scoring import rank_candidates, score_detail


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = getattr(app.state, "database", None) is None
    if owned:
        database = Database()
        try:
            database.ensure_indexes()
        except PyMongoError as exc:
            database.close()
            logger.error(f"Could not prepare MongoDB at startup: {exc}")
            raise StorageUnavailable("Database not available") from exc
        app.state.database = database
    logger.info("Dating API started")
    yield
    if owned:
        app.state.database.close()
        app.state.database = None
    logger.info("Dating API stopped")


app = FastAPI(title="Dating App API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DatingAPIError)
async def dating_error_handler(request: Request, exc: DatingAPIError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(ConnectionFailure)
async def storage_error_handler(request: Request, exc: ConnectionFailure):
    logger.error(f"{request.method} {request.url.path}: MongoDB unreachable ({exc})")
    error = StorageUnavailable("Storage unavailable, please retry")
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


@app.get("/")
def root():
    return {"message": "Dating API ready"}


@app.post("/swipe", response_model=SwipeResult)
def swipe(
    payload: SwipeRequest,
    user: User = Depends(get_current_user),
    coordinator: SwipeCoordinator = Depends(get_coordinator),
):
    return coordinator.swipe(user, payload.target_user_id, payload.action, payload.like_type)


@app.get("/candidates", response_model=CandidatePage)
def candidates(
    response: Response,
    page: int = Query(1, ge=1),
    page_size: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    feed: CandidateFeedSelector = Depends(get_feed),
):
    result = feed.get_candidates(user, page, page_size)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["X-Page"] = str(result.page)
    response.headers["X-Page-Size"] = str(result.page_size)
    response.headers["X-Has-More"] = "true" if result.has_more else "false"
    return result


@app.get("/discover", response_model=DiscoverResponse)
def discover(
    user: User = Depends(get_current_user),
    feed: CandidateFeedSelector = Depends(get_feed),
):
    return rank_candidates(user, feed.discovery_pool(user))


@app.get("/compatibility/{user_id}", response_model=CompatibilityResponse)
def compatibility(
    user_id: str,
    user: User = Depends(get_current_user),
    directory: UserDirectory = Depends(get_directory),
):
    target = directory.find_by_id(user_id)
    return CompatibilityResponse(user=public_profile(target), compatibility=score_detail(user, target))


@app.get("/matches", response_model=List[MatchView])
def matches(
    user: User = Depends(get_current_user),
    store: MatchStore = Depends(get_match_store),
):
    return store.list_for_user(user.id)


@app.get("/matches/detailed", response_model=List[DetailedMatchView])
def detailed_matches(
    user: User = Depends(get_current_user),
    coordinator: SwipeCoordinator = Depends(get_coordinator),
):
    return coordinator.detailed_matches(user)


@app.get("/liked", response_model=List[LikedUser])
def liked(
    user: User = Depends(get_current_user),
    coordinator: SwipeCoordinator = Depends(get_coordinator),
):
    return coordinator.liked_users(user)


@app.get("/received", response_model=List[ReceivedLike])
def received(
    user: User = Depends(get_current_user),
    feed: CandidateFeedSelector = Depends(get_feed),
):
    return feed.pending_likes(user)


@app.get("/stats", response_model=SwipeStats)
def stats(
    user: User = Depends(get_current_user),
    coordinator: SwipeCoordinator = Depends(get_coordinator),
):
    return coordinator.stats(user)


@app.get("/test")
def test_database(request: Request):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
    }
    database = getattr(request.app.state, "database", None)
    try:
        if database is not None:
            database.collection_names()
            response["database"] = "✅ Connected"
    except PyMongoError as e:
        response["database"] = f"⚠️ {str(e)[:80]}"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
