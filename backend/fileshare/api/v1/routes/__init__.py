from fastapi import APIRouter
from fileshare.api.v1.routes import auth
from .files import router as files_router


api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(files_router)
