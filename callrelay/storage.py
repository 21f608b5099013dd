"""
Durable user/group/chat records used by the relay for best-effort linking
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

import redis.asyncio as redis
from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_REDIS_URL
from .models import utcnow
from .logger import get_logger

logger = get_logger()

USER_KEY = "user:{username}"
GROUP_KEY = "group:{group_id}"
CHAT_KEY = "chat:{record_id}"


class User(BaseModel):
    username: str
    groups: List[str] = Field(default_factory=list)

    def add_group(self, room_id: str) -> bool:
        if room_id in self.groups:
            return False
        self.groups.append(room_id)
        return True


class Group(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId")
    members: List[str] = Field(default_factory=list)
    messages: List[str] = Field(default_factory=list)

    def add_member(self, user_id: str) -> bool:
        if user_id in self.members:
            return False
        self.members.append(user_id)
        return True

    def append_message(self, record_id: str):
        self.messages.append(record_id)


class ChatRecord(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    content: str
    author: str
    created_at: datetime = Field(default_factory=utcnow)


class ChatStore(ABC):
    """Durable storage collaborator. Records returned are detached copies;
    changes are persisted only through the save methods."""

    @abstractmethod
    async def find_user(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def save_user(self, user: User) -> User: ...

    @abstractmethod
    async def list_users(self) -> List[User]: ...

    @abstractmethod
    async def delete_user(self, username: str) -> bool: ...

    @abstractmethod
    async def find_group(self, group_id: str) -> Optional[Group]: ...

    @abstractmethod
    async def create_group(self, group_id: str, initial_member: Optional[str] = None) -> Group: ...

    @abstractmethod
    async def save_group(self, group: Group) -> Group: ...

    @abstractmethod
    async def list_groups(self) -> List[Group]: ...

    @abstractmethod
    async def delete_group(self, group_id: str) -> bool: ...

    @abstractmethod
    async def create_chat_record(self, content: str, author: str) -> ChatRecord: ...

    async def close(self):
        return None


class MemoryStore(ChatStore):
    """Process-local store, used by default and in tests"""

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._groups: Dict[str, Group] = {}
        self._chats: Dict[str, ChatRecord] = {}

    async def find_user(self, username: str) -> Optional[User]:
        user = self._users.get(username)
        return user.model_copy(deep=True) if user else None

    async def save_user(self, user: User) -> User:
        self._users[user.username] = user.model_copy(deep=True)
        return user

    async def list_users(self) -> List[User]:
        return [u.model_copy(deep=True) for u in self._users.values()]

    async def delete_user(self, username: str) -> bool:
        return self._users.pop(username, None) is not None

    async def find_group(self, group_id: str) -> Optional[Group]:
        group = self._groups.get(group_id)
        return group.model_copy(deep=True) if group else None

    async def create_group(self, group_id: str, initial_member: Optional[str] = None) -> Group:
        group = Group(group_id=group_id, members=[initial_member] if initial_member else [])
        return await self.save_group(group)

    async def save_group(self, group: Group) -> Group:
        self._groups[group.group_id] = group.model_copy(deep=True)
        return group

    async def list_groups(self) -> List[Group]:
        return [g.model_copy(deep=True) for g in self._groups.values()]

    async def delete_group(self, group_id: str) -> bool:
        return self._groups.pop(group_id, None) is not None

    async def create_chat_record(self, content: str, author: str) -> ChatRecord:
        record = ChatRecord(content=content, author=author)
        self._chats[record.id] = record
        return record

    async def get_chat_record(self, record_id: str) -> Optional[ChatRecord]:
        return self._chats.get(record_id)


class RedisStore(ChatStore):
    """Store backed by Redis, one JSON document per key"""

    def __init__(self, url: str = DEFAULT_REDIS_URL, client: Optional[redis.Redis] = None):
        self.url = url
        self.client = client if client is not None else redis.from_url(url, decode_responses=True)
        logger.info(f"Redis store configured for {url.split('@')[-1]}")

    async def _get(self, key: str, model):
        raw = await self.client.get(key)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def _scan(self, pattern: str, model) -> list:
        records = []
        async for key in self.client.scan_iter(match=pattern):
            record = await self._get(key, model)
            if record is not None:
                records.append(record)
        return records

    async def find_user(self, username: str) -> Optional[User]:
        return await self._get(USER_KEY.format(username=username), User)

    async def save_user(self, user: User) -> User:
        await self.client.set(USER_KEY.format(username=user.username), user.model_dump_json())
        return user

    async def list_users(self) -> List[User]:
        return await self._scan(USER_KEY.format(username="*"), User)

    async def delete_user(self, username: str) -> bool:
        return bool(await self.client.delete(USER_KEY.format(username=username)))

    async def find_group(self, group_id: str) -> Optional[Group]:
        return await self._get(GROUP_KEY.format(group_id=group_id), Group)

    async def create_group(self, group_id: str, initial_member: Optional[str] = None) -> Group:
        group = Group(group_id=group_id, members=[initial_member] if initial_member else [])
        return await self.save_group(group)

    async def save_group(self, group: Group) -> Group:
        await self.client.set(GROUP_KEY.format(group_id=group.group_id), group.model_dump_json(by_alias=True))
        return group

    async def list_groups(self) -> List[Group]:
        return await self._scan(GROUP_KEY.format(group_id="*"), Group)

    async def delete_group(self, group_id: str) -> bool:
        return bool(await self.client.delete(GROUP_KEY.format(group_id=group_id)))

    async def create_chat_record(self, content: str, author: str) -> ChatRecord:
        record = ChatRecord(content=content, author=author)
        await self.client.set(CHAT_KEY.format(record_id=record.id), record.model_dump_json())
        return record

    async def close(self):
        await self.client.aclose()
