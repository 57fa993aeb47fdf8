"""
Saving and reloading a deployment through the SQLite key/value store.
"""

import pytest

from tokenvest.contracts.events import EventType
from tokenvest.core.exceptions import ScheduleRevokedError, StorageError
from tokenvest.database import StorageManager
from tokenvest.deployment import VestingDeployment

from accounts import ADMIN, ALICE, BOB, ENGINE, FakeClock


@pytest.fixture
def storage(tmp_path):
    with StorageManager(tmp_path / "state" / "vesting.db") as manager:
        yield manager


class TestStorageManager:
    def test_set_get_and_default(self, storage):
        storage.set("answer", {"value": "42"})
        assert storage.get("answer") == {"value": "42"}
        assert storage.get("missing") is None
        assert storage.get("missing", default=7) == 7

    def test_set_many_overwrites(self, storage):
        storage.set_many({"a": 1, "b": [1, 2]})
        storage.set_many({"a": 2})
        assert storage.get("a") == 2
        assert storage.get("b") == [1, 2]

    def test_unserializable_value(self, storage):
        with pytest.raises(StorageError):
            storage.set("bad", object())
        assert storage.get("bad") is None

    def test_values_survive_reopen(self, tmp_path):
        path = tmp_path / "reopen.db"
        with StorageManager(path) as first:
            first.set("k", "v")
        with StorageManager(path) as second:
            assert second.get("k") == "v"


def _deploy(clock):
    deployment = VestingDeployment.create(
        admin=ADMIN,
        engine_address=ENGINE,
        token_name="Vesting Token",
        token_symbol="VEST",
        time_provider=clock,
    )
    deployment.ledger.mint(ADMIN, ENGINE, 5000)
    return deployment


def test_load_without_deployment(storage):
    assert VestingDeployment.exists(storage) is False
    with pytest.raises(StorageError, match="no vesting deployment"):
        VestingDeployment.load(storage)


def test_round_trip_preserves_engine_state(storage):
    clock = FakeClock()
    deployment = _deploy(clock)
    controller = deployment.controller
    alice_id = controller.create_vesting_schedule(ADMIN, ALICE, 0, 0, 100, 10, True, 1000, "seed")
    bob_id = controller.create_vesting_schedule(ADMIN, BOB, 0, 0, 100, 10, True, 2000, "team")
    clock.now = 40
    controller.release(ALICE, alice_id, 400)
    controller.revoke(ADMIN, bob_id)
    controller.pause(ADMIN, "audit")
    deployment.save(storage)

    assert VestingDeployment.exists(storage)
    loaded = VestingDeployment.load(storage, time_provider=clock)
    restored = loaded.controller

    assert restored.address == ENGINE
    assert restored.get_vesting_schedules_count() == 2
    assert restored.get_vesting_schedule(alice_id).released_amount == 400
    assert restored.get_vesting_schedule(bob_id).revoked is True
    assert restored.get_vesting_schedules_total_amount() == 600
    assert restored.get_schedule_ids_by_name("team") == (bob_id,)
    assert restored.compute_next_schedule_id(ALICE) == controller.compute_next_schedule_id(ALICE)
    assert restored.is_paused()
    assert loaded.ledger.balance_of(ALICE) == 400
    assert loaded.gate.admin == ADMIN
    assert list(restored.events) == list(controller.events)
    released = restored.events.filter(EventType.TOKENS_RELEASED)[0]
    assert released.args["amount"] == 400
    restored.check_invariants()

    restored.unpause(ADMIN)
    with pytest.raises(ScheduleRevokedError):
        restored.release(BOB, bob_id, 1)
    clock.now = 100
    restored.release(ALICE, alice_id, 600)
    assert loaded.ledger.balance_of(ALICE) == 1000
    assert restored.events.filter(EventType.TOKENS_RELEASED)[-1].args["amount"] == 600
