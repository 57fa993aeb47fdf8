import pytest

from tokenvest.contracts.access import SingleAdminGate
from tokenvest.contracts.ledger import TokenLedger
from tokenvest.contracts.vesting import VestingController

from accounts import ADMIN, ALICE, ENGINE, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gate():
    return SingleAdminGate(ADMIN)


@pytest.fixture
def ledger():
    return TokenLedger(name="Vesting Token", symbol="VEST", owner=ADMIN)


@pytest.fixture
def controller(ledger, gate, clock):
    """Controller whose vault holds 10_000 tokens."""
    ledger.mint(ADMIN, ENGINE, 10_000)
    return VestingController(ledger=ledger, gate=gate, address=ENGINE, time_provider=clock)


@pytest.fixture
def make_schedule(controller):
    """Create a schedule with the reference parameters, overridable per test."""

    def _make(**overrides):
        params = dict(
            beneficiary=ALICE,
            start=0,
            cliff_offset=0,
            duration=100,
            slice_interval=10,
            revocable=True,
            amount=1000,
            name="seed",
        )
        params.update(overrides)
        return controller.create_vesting_schedule(ADMIN, **params)

    return _make
