import pytest

from callrelay import ChatEntry, MessageBuffer


def entry(n: int) -> ChatEntry:
    return ChatEntry(content=f"m{n}", sender="u1", connection_id="c1")


def test_history_preserves_append_order() -> None:
    buffer = MessageBuffer()
    for n in range(3):
        buffer.append("/r/AAAAA", entry(n))
    assert [e.content for e in buffer.history_of("/r/AAAAA")] == ["m0", "m1", "m2"]
    assert buffer.history_of("/r/other") == []


def test_history_is_bounded() -> None:
    buffer = MessageBuffer(history_limit=2)
    for n in range(5):
        buffer.append("/r/AAAAA", entry(n))
    assert [e.content for e in buffer.history_of("/r/AAAAA")] == ["m3", "m4"]


def test_clear_releases_room_history() -> None:
    buffer = MessageBuffer()
    buffer.append("/r/AAAAA", entry(1))
    buffer.clear("/r/AAAAA")
    buffer.clear("/r/never")
    assert buffer.history_of("/r/AAAAA") == []
    assert buffer.get_stats()["rooms_with_history"] == 0


def test_history_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        MessageBuffer(history_limit=0)


def test_chat_entry_is_immutable() -> None:
    with pytest.raises(AttributeError):
        entry(1).content = "changed"
