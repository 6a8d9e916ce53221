from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
import threading
import time

import pytest

from exceptions import RoomNotFound
from models.schemas import Participant
import room_registry
from room_registry import PARTICIPANTS, WAITING, Room, RoomRegistry


def make_room(registry, room_id=None, ttl=timedelta(hours=24)):
    host = Participant(id="host-1", name="Alice", isHost=True)
    room = Room(room_id or registry.new_room_id(), host, ttl)
    registry.put(room)
    return room


def test_new_room_ids_are_unique(registry):
    ids = {registry.new_room_id() for _ in range(500)}
    assert len(ids) == 500


def test_removed_room_id_is_not_reissued(registry, monkeypatch):
    room = make_room(registry)
    registry.remove(room.id)

    values = iter([SimpleNamespace(hex=room.id), SimpleNamespace(hex="fresh-id")])
    monkeypatch.setattr(room_registry.uuid, "uuid4", lambda: next(values))

    assert registry.new_room_id() == "fresh-id"


def test_get_unknown_room_raises(registry):
    with pytest.raises(RoomNotFound):
        registry.get("missing")


def test_put_get_remove(registry):
    room = make_room(registry)
    assert registry.get(room.id) is room
    assert len(registry) == 1
    assert registry.remove(room.id) is room
    assert registry.remove(room.id) is None
    assert len(registry) == 0


def test_host_starts_as_only_participant(registry):
    room = make_room(registry)
    assert list(room.participants) == ["host-1"]
    assert room.waiting_list == {}
    assert room.is_active


def test_promote_moves_between_collections():
    room = Room("r1", Participant(id="h", name="Alice", isHost=True), timedelta(hours=1))
    room.enqueue(Participant(id="bob", name="Bob"))
    now = datetime.now(timezone.utc)

    promoted = room.promote("bob", now)

    assert promoted.isApproved is True
    assert promoted.approvedAt == now
    assert "bob" in room.participants
    assert "bob" not in room.waiting_list


def test_promote_of_non_waiting_user_inserts_nothing():
    room = Room("r1", Participant(id="h", name="Alice", isHost=True), timedelta(hours=1))
    assert room.promote("ghost", datetime.now(timezone.utc)) is None
    assert "ghost" not in room.participants


def test_discard_and_locate():
    room = Room("r1", Participant(id="h", name="Alice", isHost=True), timedelta(hours=1))
    room.enqueue(Participant(id="w", name="Wendy"))
    room.admit(Participant(id="p", name="Pat"))

    assert room.locate("w")[0] == WAITING
    assert room.locate("p")[0] == PARTICIPANTS
    assert room.locate("nobody") == (None, None)

    assert room.discard("w") == WAITING
    assert room.discard("p") == PARTICIPANTS
    assert room.discard("p") is None


def test_expiry():
    created = datetime.now(timezone.utc) - timedelta(hours=2)
    room = Room("r1", Participant(id="h", name="Alice", isHost=True), timedelta(hours=1), created_at=created)
    assert room.is_expired()
    assert room.valid_until == created + timedelta(hours=1)


def test_locked_yields_room(registry):
    room = make_room(registry)
    with registry.locked(room.id) as locked_room:
        assert locked_room is room
        assert room.lock.locked()
    assert not room.lock.locked()


def test_locked_rejects_room_ended_while_waiting_for_lock(registry):
    room = make_room(registry)
    errors = []

    def contender():
        try:
            with registry.locked(room.id):
                pass
        except RoomNotFound as e:
            errors.append(e)

    with room.lock:
        worker = threading.Thread(target=contender)
        worker.start()
        time.sleep(0.05)
        registry.remove(room.id)
    worker.join(timeout=2)

    assert len(errors) == 1


def test_summary_counts(registry):
    room = make_room(registry)
    room.enqueue(Participant(id="w", name="Wendy"))
    status = room.summary()
    assert status.hostName == "Alice"
    assert status.participantCount == 1
    assert status.waitingCount == 1
    assert status.isActive is True
