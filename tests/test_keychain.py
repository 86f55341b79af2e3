import pytest

from archivesign.src.core.errors import KeychainError
from archivesign.src.core.keychain import fetch_keychain_values
from conftest import FakeRunner, run, tool_result

SECRETS = {"API_TOKEN": "s3cr3t", "SIGNING_PASS": "hunter2"}


def security(args, cwd):
    assert args[:2] == ["find-generic-password", "-w"]
    name, account = args[3], args[5]
    if account != "ci-bot" or name not in SECRETS:
        return tool_result(
            stderr="security: SecKeychainSearchCopyNext: The specified item could not be found in the keychain.",
            returncode=44,
        )
    return f"{SECRETS[name]}\n"


def test_fetches_every_name_for_account():
    runner = FakeRunner({"security": security})

    values = run(fetch_keychain_values(runner, ["API_TOKEN", "SIGNING_PASS"], "ci-bot"))

    assert values == SECRETS
    assert [c[3] for c in runner.calls_to("security")] == ["API_TOKEN", "SIGNING_PASS"]


def test_missing_item_fails_whole_fetch():
    runner = FakeRunner({"security": security})

    with pytest.raises(KeychainError, match="Unable to find the keychain!"):
        run(fetch_keychain_values(runner, ["API_TOKEN", "NOPE", "SIGNING_PASS"], "ci-bot"))

    assert len(runner.calls_to("security")) == 2


def test_missing_security_tool():
    with pytest.raises(KeychainError):
        run(fetch_keychain_values(FakeRunner(), ["API_TOKEN"], "ci-bot"))
