from fastapi import APIRouter

from taskboard.api.routes import comments, health, projects, stage_progress, stages, tasks, tenants, users

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(tenants.router, tags=["tenants"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(stages.router, prefix="/projects", tags=["stages"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(stage_progress.router, prefix="/tasks", tags=["stage-progress"])
api_router.include_router(comments.router, tags=["comments"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
