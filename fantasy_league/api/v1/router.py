from fastapi import APIRouter
from fantasy_league.api.v1.endpoints import admin, races, standings, teams

api_router = APIRouter()

api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(races.router, prefix="/races", tags=["races"])
api_router.include_router(teams.router, prefix="/teams", tags=["teams"])
api_router.include_router(standings.router, prefix="/standings", tags=["standings"])
