# backend/wallfair/api/v1/routers.py
from fastapi import APIRouter

from wallfair.api.v1 import chat, users

# main API router (/api)
api_router = APIRouter(prefix="/api")

api_router.include_router(users.router)
api_router.include_router(chat.router)
