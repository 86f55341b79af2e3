import pytest

from archivesign import cli
from archivesign.commands import identities as identities_command
from archivesign.commands import keychain as keychain_command
from archivesign.commands import sign as sign_command
from conftest import (
    DIST_FINGERPRINT,
    DIST_NAME,
    FakeRunner,
    make_ipa_bytes,
    make_zip,
    tool_result,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("ARCHIVESIGN_CONFIG", str(tmp_path / "config.toml"))
    monkeypatch.setenv("ARCHIVESIGN_WORKSPACE", str(tmp_path / "workspaces"))
    monkeypatch.delenv("ARCHIVESIGN_KEYCHAIN_ACCOUNT", raising=False)


def patch_runner(monkeypatch, module, handlers):
    runner = FakeRunner(handlers)
    monkeypatch.setattr(module, "ToolRunner", lambda **kwargs: runner)
    return runner


def test_no_command_prints_help():
    assert cli.main([]) == 1


def test_missing_archive(tmp_path):
    assert cli.main(["ipa", str(tmp_path / "missing.zip")]) == 1


def test_ipa_command_end_to_end(tmp_path, monkeypatch, security_handler, capsys):
    def codesign(args, cwd):
        if args[0] == "-d":
            return tool_result(stderr=f"Authority={DIST_NAME}\n")
        return tool_result()

    patch_runner(
        monkeypatch, sign_command, {"security": security_handler, "codesign": codesign}
    )
    upload = make_zip(tmp_path / "upload.zip", {"MyApp.ipa": make_ipa_bytes("MyApp")})

    assert cli.main(["ipa", str(upload)]) == 0
    assert "Delivery package:" in capsys.readouterr().out


def test_xcarchive_command_failure_exit_code(tmp_path, monkeypatch):
    patch_runner(monkeypatch, sign_command, {})
    upload = make_zip(tmp_path / "upload.zip", {"options.plist": "<plist/>"})

    assert cli.main(["xcarchive", str(upload)]) == 1


def test_identities_command(monkeypatch, security_handler, capsys):
    patch_runner(monkeypatch, identities_command, {"security": security_handler})

    assert cli.main(["identities"]) == 0
    assert DIST_FINGERPRINT in capsys.readouterr().out


def test_keychain_command_masks_values(monkeypatch, capsys):
    patch_runner(monkeypatch, keychain_command, {"security": lambda args, cwd: "s3cr3t\n"})

    assert cli.main(["keychain", "API_TOKEN", "--account", "ci-bot"]) == 0
    out = capsys.readouterr().out
    assert "API_TOKEN" in out
    assert "s3cr3t" not in out


def test_keychain_command_needs_account():
    assert cli.main(["keychain", "API_TOKEN"]) == 1


def test_setup_writes_config(tmp_path, monkeypatch):
    from archivesign.commands import setup as setup_command

    answers = {
        "Directory for signing workspaces": str(tmp_path / "ws"),
        "Keychain account for stored credentials (leave empty to skip)": "ci-bot",
    }
    monkeypatch.setattr(
        setup_command.Prompt, "ask", lambda prompt, **kwargs: answers[prompt]
    )
    monkeypatch.setattr(setup_command.Confirm, "ask", lambda prompt, **kwargs: False)
    config = tmp_path / "written.toml"

    assert cli.main(["setup", "--config", str(config)]) == 0

    text = config.read_text()
    assert 'account = "ci-bot"' in text
    assert (tmp_path / "ws").is_dir()
