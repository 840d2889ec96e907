import pytest

from easy import preflight
from easy import system_utils as util
from easy.errors import EnvironmentFatalError
from easy.system_utils import parse_os_release

FEDORA_RELEASE = 'NAME="Fedora Linux"\nID=fedora\nVERSION_ID=41\nPRETTY_NAME="Fedora Linux 41 (Server Edition)"\n'


def test_parse_os_release_strips_quotes_and_comments():
    os_vars = parse_os_release("# comment\n" + FEDORA_RELEASE + "\nBROKEN LINE\n")
    assert os_vars["ID"] == "fedora"
    assert os_vars["PRETTY_NAME"] == "Fedora Linux 41 (Server Edition)"
    assert "BROKEN LINE" not in os_vars


def test_check_fedora_accepts_fedora(tmp_path):
    path = tmp_path / "os-release"
    path.write_text(FEDORA_RELEASE)
    assert preflight.check_fedora(path)["VERSION_ID"] == "41"


def test_check_fedora_rejects_other_distros(tmp_path):
    path = tmp_path / "os-release"
    path.write_text("ID=ubuntu\n")
    with pytest.raises(EnvironmentFatalError, match="Fedora only. Detected distro: ubuntu"):
        preflight.check_fedora(path)


def test_check_fedora_without_os_release(tmp_path):
    with pytest.raises(EnvironmentFatalError, match="OS detection failed"):
        preflight.check_fedora(tmp_path / "missing")


def test_ensure_tools_installs_missing(monkeypatch):
    installed = set()
    monkeypatch.setattr(util, "command_exists", lambda name: name in installed)

    def fake_install(packages, **kwargs):
        installed.update(packages)
        return True

    monkeypatch.setattr(util, "install_dnf_packages", fake_install)
    preflight.ensure_tools(["git"])
    assert installed == {"git"}


def test_ensure_tools_fails_when_install_fails(monkeypatch):
    monkeypatch.setattr(util, "command_exists", lambda name: False)
    monkeypatch.setattr(util, "install_dnf_packages", lambda packages, **kwargs: False)
    with pytest.raises(EnvironmentFatalError, match="git"):
        preflight.ensure_tools(["git"])


def test_sync_repository_replaces_existing_copy(monkeypatch, tmp_path):
    from easy import repo_sync

    target = tmp_path / "EASY"
    target.mkdir()
    calls = []
    monkeypatch.setattr(util, "run_command", lambda command, **kwargs: calls.append(command))

    assert repo_sync.sync_repository("https://example.invalid/easy.git", target) == target
    assert calls == [
        ["sudo", "rm", "-rf", str(target)],
        ["git", "clone", "https://example.invalid/easy.git", str(target)],
    ]


def test_sync_repository_clone_failure_is_fatal(monkeypatch, tmp_path):
    import subprocess

    from easy import repo_sync

    def failing(command, **kwargs):
        raise subprocess.CalledProcessError(128, command)

    monkeypatch.setattr(util, "run_command", failing)
    with pytest.raises(EnvironmentFatalError, match="Could not fetch the setup scripts"):
        repo_sync.sync_repository("https://example.invalid/easy.git", tmp_path / "EASY")
