from fastapi import APIRouter
from taskboard.api import auth, tasks, teams, users

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(tasks.router, prefix="/teams/{team_id}/tasks", tags=["Tasks"])
router.include_router(teams.router, prefix="/teams", tags=["Teams"])
