"""Shared addresses and a controllable clock for vesting tests."""

ADMIN = "0xadmin000000000000000000000000000000000001"
ALICE = "0xa11ce00000000000000000000000000000000002"
BOB = "0xb0b0000000000000000000000000000000000003"
MALLORY = "0x6a11023000000000000000000000000000000004"
ENGINE = "0xe6e1e00000000000000000000000000000000005"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds
