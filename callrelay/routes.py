"""
HTTP routes: health check and user/group records
"""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, HTTPException, Request

from .constants import ERROR_MESSAGES
from .schemas import CreateGroupRequest, CreateUserRequest, HealthResponse
from .storage import ChatStore, Group, User
from .logger import get_logger

logger = get_logger()

health_router = APIRouter(prefix="/api", tags=["health"])
users_router = APIRouter(prefix="/api/users", tags=["users"])
groups_router = APIRouter(prefix="/api/groups", tags=["groups"])


def _store(request: Request) -> ChatStore:
    return request.app.state.store


@health_router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Liveness check with current room and connection counts"""
    stats = request.app.state.relay.registry.get_stats()
    return HealthResponse(
        status="OK",
        time=datetime.now(timezone.utc).isoformat(),
        rooms=stats["rooms"],
        connections=stats["connections"],
    )


@users_router.get("", response_model=List[User])
async def list_users(request: Request):
    return await _store(request).list_users()


@users_router.post("", response_model=User, status_code=201)
async def create_user(body: CreateUserRequest, request: Request):
    store = _store(request)
    if await store.find_user(body.username) is not None:
        raise HTTPException(status_code=409, detail=ERROR_MESSAGES["user_exists"])
    user = await store.save_user(User(username=body.username))
    logger.info(f"User created: {user.username}")
    return user


@users_router.get("/{username}", response_model=User)
async def get_user(username: str, request: Request):
    user = await _store(request).find_user(username)
    if user is None:
        raise HTTPException(status_code=404, detail=ERROR_MESSAGES["user_not_found"])
    return user


@users_router.delete("/{username}")
async def delete_user(username: str, request: Request):
    if not await _store(request).delete_user(username):
        raise HTTPException(status_code=404, detail=ERROR_MESSAGES["user_not_found"])
    logger.info(f"User deleted: {username}")
    return {"deleted": username}


def _group_body(group: Group) -> dict:
    return group.model_dump(by_alias=True)


@groups_router.get("")
async def list_groups(request: Request):
    return [_group_body(g) for g in await _store(request).list_groups()]


@groups_router.post("", status_code=201)
async def create_group(body: CreateGroupRequest, request: Request):
    store = _store(request)
    if await store.find_group(body.group_id) is not None:
        raise HTTPException(status_code=409, detail=ERROR_MESSAGES["group_exists"])

    group = Group(group_id=body.group_id)
    for member in body.members:
        group.add_member(member)
    await store.save_group(group)
    logger.info(f"Group created: {group.group_id}")
    return _group_body(group)


@groups_router.get("/{group_id}")
async def get_group(group_id: str, request: Request):
    group = await _store(request).find_group(group_id)
    if group is None:
        raise HTTPException(status_code=404, detail=ERROR_MESSAGES["group_not_found"])
    return _group_body(group)


@groups_router.delete("/{group_id}")
async def delete_group(group_id: str, request: Request):
    if not await _store(request).delete_group(group_id):
        raise HTTPException(status_code=404, detail=ERROR_MESSAGES["group_not_found"])
    logger.info(f"Group deleted: {group_id}")
    return {"deleted": group_id}
