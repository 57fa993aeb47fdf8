import json
import logging

import pytest
from click.testing import CliRunner

from tokenvest.cli.main import cli
from tokenvest.contracts.identity import compute_schedule_id

from accounts import ADMIN, ALICE, BOB, ENGINE


@pytest.fixture(autouse=True)
def _reset_cli_logging():
    yield
    logger = logging.getLogger("tokenvest")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def db(tmp_path):
    return tmp_path / "vesting.db"


def _run(db, *args, now=None, json_output=True):
    """Invoke the CLI against ``db`` with logging silenced."""
    argv = ["--db", str(db), "--log-level", "CRITICAL"]
    if json_output:
        argv.append("--json-output")
    if now is not None:
        argv += ["--now", str(now)]
    return CliRunner().invoke(cli, argv + list(args))


def _ok(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.fixture
def deployed(db):
    _ok(_run(db, "init", "--admin", ADMIN, "--engine-address", ENGINE, "--supply", "10000"))
    return db


@pytest.fixture
def schedule_id(deployed):
    payload = _ok(
        _run(
            deployed, "create",
            "--caller", ADMIN, "--beneficiary", ALICE,
            "--start", "0", "--duration", "100", "--slice", "10",
            "--amount", "1000", "--name", "seed",
            now=0,
        )
    )
    return payload["schedule_id"]


def test_init_reports_deployment(db):
    payload = _ok(_run(db, "init", "--admin", ADMIN, "--engine-address", ENGINE, "--supply", "500"))
    assert payload == {"engine": ENGINE, "admin": ADMIN, "token": "VEST", "vault_balance": "500"}


def test_init_refuses_to_overwrite(deployed):
    result = _run(deployed, "init", "--admin", ADMIN, "--engine-address", ENGINE)
    assert result.exit_code == 1
    assert "already exists" in result.output

    forced = _ok(_run(deployed, "init", "--admin", BOB, "--engine-address", ENGINE, "--force"))
    assert forced["admin"] == BOB


def test_commands_require_deployment(db):
    result = _run(db, "status")
    assert result.exit_code == 1
    assert "no vesting deployment" in result.output


def test_create_and_show(schedule_id, deployed):
    assert schedule_id == compute_schedule_id(ALICE, 0)
    payload = _ok(_run(deployed, "show", schedule_id, now=25))
    assert payload["beneficiary"] == ALICE
    assert payload["total_amount"] == "1000"
    assert payload["releasable"] == "200"
    assert payload["status"] == "active"


def test_release_default_amount_and_explicit(schedule_id, deployed):
    assert _ok(_run(deployed, "releasable", schedule_id, now=25))["releasable"] == "200"
    assert _ok(_run(deployed, "release", "--caller", ALICE, "--id", schedule_id, now=25))["released"] == "200"
    assert _ok(_run(deployed, "releasable", schedule_id, now=55))["releasable"] == "300"

    payload = _ok(
        _run(deployed, "release", "--caller", ALICE, "--id", schedule_id, "--amount", "100", now=55)
    )
    assert payload["released"] == "100"

    status = _ok(_run(deployed, "status"))
    assert status["reserved"] == "700"
    assert status["balance"] == "9700"
    assert status["withdrawable"] == "9000"


def test_over_release_fails_without_persisting(schedule_id, deployed):
    result = _run(deployed, "release", "--caller", ALICE, "--id", schedule_id, "--amount", "201", now=25)
    assert result.exit_code == 1
    assert "not enough vested tokens" in result.output
    assert _ok(_run(deployed, "status"))["reserved"] == "1000"


def test_revoke_then_withdraw(schedule_id, deployed):
    payload = _ok(_run(deployed, "revoke", "--caller", ADMIN, "--id", schedule_id, now=30))
    assert payload["unreleased"] == "700"

    status = _ok(_run(deployed, "status"))
    assert status["reserved"] == "0"
    assert status["withdrawable"] == "9700"

    assert _ok(_run(deployed, "withdraw", "--caller", ADMIN, "--amount", "9700"))["withdrawn"] == "9700"
    assert _ok(_run(deployed, "status"))["balance"] == "0"


def test_unauthorized_revoke(schedule_id, deployed):
    result = _run(deployed, "revoke", "--caller", BOB, "--id", schedule_id, now=30)
    assert result.exit_code == 1
    assert "not the admin" in result.output


def test_pause_blocks_mutations(schedule_id, deployed):
    assert _ok(_run(deployed, "pause", "--caller", ADMIN, "--reason", "audit"))["changed"] is True
    assert _ok(_run(deployed, "status"))["paused"] is True

    result = _run(deployed, "release", "--caller", ALICE, "--id", schedule_id, now=50)
    assert result.exit_code == 1
    assert "paused" in result.output

    assert _ok(_run(deployed, "unpause", "--caller", ADMIN))["changed"] is True
    assert _ok(_run(deployed, "release", "--caller", ALICE, "--id", schedule_id, now=50))["released"] == "500"


def test_transfer_admin(deployed):
    assert _ok(_run(deployed, "transfer-admin", "--caller", ADMIN, "--new-admin", BOB))["admin"] == BOB
    result = _run(deployed, "withdraw", "--caller", ADMIN, "--amount", "1")
    assert result.exit_code == 1
    assert _ok(_run(deployed, "withdraw", "--caller", BOB, "--amount", "1"))["withdrawn"] == "1"


def test_list_filters(schedule_id, deployed):
    _ok(
        _run(
            deployed, "create",
            "--caller", ADMIN, "--beneficiary", BOB,
            "--start", "0", "--duration", "50", "--amount", "10", "--name", "team",
            "--non-revocable", now=0,
        )
    )
    everything = _ok(_run(deployed, "list", now=0))["schedules"]
    assert [s["name"] for s in everything] == ["seed", "team"]
    assert everything[1]["revocable"] is False

    by_name = _ok(_run(deployed, "list", "--name", "team", now=0))["schedules"]
    assert [s["beneficiary"] for s in by_name] == [BOB]
    by_holder = _ok(_run(deployed, "list", "--beneficiary", ALICE, now=0))["schedules"]
    assert [s["schedule_id"] for s in by_holder] == [schedule_id]

    result = _run(deployed, "list", "--name", "team", "--beneficiary", BOB)
    assert result.exit_code == 2


def test_events_log(schedule_id, deployed):
    _ok(_run(deployed, "release", "--caller", ALICE, "--id", schedule_id, now=40))
    events = _ok(_run(deployed, "events"))["events"]
    assert [e["event_type"] for e in events] == ["ScheduleCreated", "TokensReleased"]
    assert events[1]["args"]["amount"] == "400"
    assert events[1]["timestamp"] == 40

    released = _ok(_run(deployed, "events", "--type", "TokensReleased"))["events"]
    assert len(released) == 1


def test_mint_into_vault(deployed):
    payload = _ok(_run(deployed, "mint", "--caller", ADMIN, "--amount", "5"))
    assert payload == {"to": ENGINE, "amount": "5", "balance": "10005"}


def test_human_readable_output(schedule_id, deployed):
    result = _run(deployed, "status", json_output=False)
    assert result.exit_code == 0, result.output
    assert "Vesting Engine" in result.output

    result = _run(deployed, "list", "--name", "missing", json_output=False)
    assert result.exit_code == 0, result.output
    assert "No schedules found" in result.output


def test_release_with_nothing_vested_explains_why(schedule_id, deployed):
    result = _run(deployed, "release", "--caller", ALICE, "--id", schedule_id, now=5)
    assert result.exit_code == 1
    assert "nothing releasable" in result.output
