from fastapi import Depends, Request

from dating_api.coordinator import SwipeCoordinator
from dating_api.database import Database
from dating_api.directory import UserDirectory
from dating_api.errors import StorageUnavailable
from dating_api.feed import CandidateFeedSelector
from dating_api.ledger import SwipeLedger
from dating_api.matches import MatchStore


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise StorageUnavailable("Database not configured")
    return database


def get_directory(database: Database = Depends(get_database)) -> UserDirectory:
    return UserDirectory(database.users)


def get_ledger(database: Database = Depends(get_database)) -> SwipeLedger:
    return SwipeLedger(database.swipes)


def get_match_store(
    database: Database = Depends(get_database),
    directory: UserDirectory = Depends(get_directory),
) -> MatchStore:
    return MatchStore(database.matches, directory)


def get_feed(
    directory: UserDirectory = Depends(get_directory),
    ledger: SwipeLedger = Depends(get_ledger),
) -> CandidateFeedSelector:
    return CandidateFeedSelector(directory, ledger)


def get_coordinator(
    directory: UserDirectory = Depends(get_directory),
    ledger: SwipeLedger = Depends(get_ledger),
    matches: MatchStore = Depends(get_match_store),
) -> SwipeCoordinator:
    return SwipeCoordinator(directory, ledger, matches)
