import asyncio
import fnmatch
import json
from typing import Dict, Optional

from callrelay import Group, MemoryStore, RedisStore, User


class FakeRedis:
    """In-memory stand-in for the redis.asyncio client calls RedisStore makes"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.closed = False

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    async def delete(self, key: str) -> int:
        return 1 if self.data.pop(key, None) is not None else 0

    async def scan_iter(self, match: str = "*"):
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        self.closed = True


def make_store():
    client = FakeRedis()
    return RedisStore(client=client), client


def test_group_is_stored_under_its_alias_and_read_back() -> None:
    async def scenario():
        store, client = make_store()
        assert await store.find_group("AB12C") is None

        await store.create_group("AB12C", initial_member="u1")
        document = json.loads(client.data["group:AB12C"])
        assert document["groupId"] == "AB12C"
        assert "group_id" not in document

        group = await store.find_group("AB12C")
        assert group == Group(group_id="AB12C", members=["u1"])
        group.add_member("u2")
        group.append_message("m1")
        await store.save_group(group)

        stored = await store.find_group("AB12C")
        assert stored.members == ["u1", "u2"]
        assert stored.messages == ["m1"]

    asyncio.run(scenario())


def test_users_round_trip_list_and_delete() -> None:
    async def scenario():
        store, client = make_store()
        await store.save_user(User(username="u1", groups=["AB12C"]))
        await store.save_user(User(username="u2"))
        await store.create_group("ZZZZZ")

        assert await store.find_user("u1") == User(username="u1", groups=["AB12C"])
        assert sorted(u.username for u in await store.list_users()) == ["u1", "u2"]
        assert [g.group_id for g in await store.list_groups()] == ["ZZZZZ"]

        assert await store.delete_user("u2") is True
        assert await store.delete_user("u2") is False
        assert await store.find_user("u2") is None
        assert await store.delete_group("ZZZZZ") is True
        assert await store.list_groups() == []

    asyncio.run(scenario())


def test_chat_record_is_written_under_chat_key() -> None:
    async def scenario():
        store, client = make_store()
        record = await store.create_chat_record("hello", "u1")
        document = json.loads(client.data[f"chat:{record.id}"])
        assert document["content"] == "hello"
        assert document["author"] == "u1"
        # Chat records never show up as users or groups
        assert await store.list_users() == []
        assert await store.list_groups() == []

        await store.close()
        assert client.closed

    asyncio.run(scenario())


def test_memory_store_returns_detached_copies() -> None:
    async def scenario():
        store = MemoryStore()
        await store.create_group("AB12C", initial_member="u1")
        group = await store.find_group("AB12C")
        group.add_member("u2")
        assert (await store.find_group("AB12C")).members == ["u1"]

        await store.save_group(group)
        assert (await store.find_group("AB12C")).members == ["u1", "u2"]

    asyncio.run(scenario())
