# EASY/easy/setups/common.py

"""
Helpers shared by the bundled setup scripts: Fedora and Docker checks,
container health polling with escalation, registry login and the
backup/restore of data directories.
"""

import getpass
import json
import random
import re
import subprocess
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from easy import console_output as con
from easy import system_utils as util
from easy.logger_utils import app_logger

DOCKER_REPO_FILE = Path("/etc/yum.repos.d/docker-ce.repo")
DOCKER_DAEMON_CONFIG = Path("/etc/docker/daemon.json")

LEGACY_DOCKER_PACKAGES = [
    "docker", "docker-client", "docker-client-latest", "docker-common",
    "docker-latest", "docker-latest-logrotate", "docker-logrotate", "docker-engine",
]
DOCKER_PACKAGES = ["docker-ce", "docker-ce-cli", "containerd.io", "docker-buildx-plugin", "docker-compose-plugin"]

# Health status, or the plain container state for images without a HEALTHCHECK.
HEALTH_FORMAT = "{{if .State.Health}}{{.State.Health.Status}}{{else}}{{.State.Status}}{{end}}"
READY_STATES = ("healthy", "running")

BACKUP_DIR_PATTERN = re.compile(r"^backup_\d{6}$")


def docker(*args: str, check: bool = True, capture_output: bool = True,
           timeout: Optional[float] = None) -> subprocess.CompletedProcess:
    """Runs 'sudo docker <args>' through run_command."""
    return util.run_command(
        ["sudo", "docker", *args],
        check=check, capture_output=capture_output, timeout=timeout,
        logger=app_logger, print_fn_error=con.print_error if check else None,
    )


def check_fedora() -> bool:
    os_vars = util.read_os_release()
    if os_vars is None:
        con.print_error("OS detection failed. Exiting.")
        return False
    if os_vars.get("ID") != "fedora":
        con.print_error(f"This script is designed for Fedora only. Detected distro: {os_vars.get('ID', 'unknown')}. Exiting.")
        return False
    con.print_success(f"Distro detected: Fedora ({os_vars.get('VERSION_ID', '?')})")
    return True


def render_docker_repo(fedora_version: str) -> str:
    return (
        "[docker-ce-stable]\n"
        "name=Docker CE Stable - $basearch\n"
        f"baseurl=https://download.docker.com/linux/fedora/{fedora_version}/$basearch/stable\n"
        "enabled=1\n"
        "gpgcheck=1\n"
        "gpgkey=https://download.docker.com/linux/fedora/gpg\n"
    )


def ensure_docker() -> bool:
    """Installs Docker CE from the upstream repository when docker is missing."""
    con.print_step("Docker")
    if util.command_exists("docker"):
        con.print_success("Docker is already installed.")
    else:
        con.print_warning("Docker not found. Installing Docker for Fedora...")
        try:
            # Old packages are usually absent; a failed removal is expected.
            util.run_command(["sudo", "dnf", "remove", "-y", *LEGACY_DOCKER_PACKAGES],
                             check=False, capture_output=True, logger=app_logger)
            if not util.install_dnf_packages(["dnf-plugins-core"], logger=app_logger, print_fn_error=con.print_error):
                return False
            fedora_version = util.run_command(["rpm", "-E", "%fedora"], capture_output=True,
                                              logger=app_logger).stdout.strip()
            if not fedora_version.isdigit():
                con.print_error(f"Unexpected Fedora version '{fedora_version}'.")
                return False
            if not util.write_system_file(DOCKER_REPO_FILE, render_docker_repo(fedora_version), logger=app_logger):
                return False
            if not util.install_dnf_packages(DOCKER_PACKAGES, logger=app_logger, print_fn_error=con.print_error):
                return False
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            app_logger.error(f"Docker installation failed: {e}")
            con.print_error(f"Docker installation failed: {e}")
            return False

    if not util.systemctl("enable", "--now", "docker", logger=app_logger):
        con.print_error("Could not start the Docker daemon.")
        return False
    con.print_sub_step("Docker daemon is active.")
    return True


def ensure_docker_group(user: Optional[str] = None) -> bool:
    """
    Adds the user to the 'docker' group. Returns True if a new login is
    needed for the membership to apply (the setup itself uses sudo docker).
    """
    user = user or getpass.getuser()
    try:
        if util.run_command(["getent", "group", "docker"], check=False, capture_output=True,
                            logger=app_logger).returncode != 0:
            con.print_warning("Group 'docker' does not exist. Creating group 'docker'...")
            util.run_command(["sudo", "groupadd", "docker"], logger=app_logger, print_fn_error=con.print_error)
        groups = util.run_command(["id", "-nG", user], capture_output=True, logger=app_logger).stdout.split()
        if "docker" in groups:
            return False
        con.print_warning(f"User not in 'docker' group. Adding {user} to the 'docker' group...")
        util.run_command(["sudo", "usermod", "-aG", "docker", user], logger=app_logger, print_fn_error=con.print_error)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        app_logger.warning(f"Could not manage the docker group for {user}: {e}")
        con.print_warning(f"Could not manage the docker group for {user}: {e}")
        return False
    con.print_info("Log out and back in to use docker without sudo.")
    return True


def merge_daemon_config(existing: Optional[str], wanted: Dict[str, Any]) -> Dict[str, Any]:
    """Existing daemon.json content with the wanted keys set on top."""
    current: Dict[str, Any] = {}
    if existing and existing.strip():
        try:
            loaded = json.loads(existing)
            if isinstance(loaded, dict):
                current = loaded
        except json.JSONDecodeError as e:
            app_logger.warning(f"{DOCKER_DAEMON_CONFIG} is not valid JSON ({e}); it will be replaced.")
    current.update(wanted)
    return current


def write_docker_daemon_config(wanted: Dict[str, Any]) -> bool:
    """Writes the daemon configuration and restarts docker when it changed."""
    existing = util.read_system_file(DOCKER_DAEMON_CONFIG, logger=app_logger)
    merged = merge_daemon_config(existing, wanted)
    if existing is not None and merge_daemon_config(existing, {}) == merged:
        con.print_sub_step(f"{DOCKER_DAEMON_CONFIG} already up to date.")
        return True
    if not util.write_system_file(DOCKER_DAEMON_CONFIG, json.dumps(merged, indent=2) + "\n", logger=app_logger):
        return False
    con.print_sub_step(f"Updated {DOCKER_DAEMON_CONFIG}; restarting docker.")
    return util.systemctl("restart", "docker", logger=app_logger)


def registry_login(registry: str, attempts: int = 3, config_path: Optional[Path] = None) -> bool:
    """Interactive 'docker login', skipped when credentials are already stored."""
    config_path = config_path or Path.home() / ".docker" / "config.json"
    if config_path.is_file():
        con.print_success(f"Existing Docker credentials found; skipping {registry} login.")
        return True
    con.print_info(f"Please log in to {registry}. Use your username and a token with the 'read:packages' scope.")
    for attempt in range(1, attempts + 1):
        con.print_sub_step(f"Login attempt {attempt} of {attempts}:")
        try:
            proc = util.run_command(["sudo", "docker", "login", registry], check=False, logger=app_logger)
        except FileNotFoundError:
            return False
        if proc.returncode == 0:
            con.print_success(f"{registry} login successful.")
            return True
        con.print_warning(f"Attempt {attempt} failed.")
    con.print_error(f"{registry} login failed after {attempts} attempts.")
    return False


def container_exists(name: str) -> bool:
    proc = docker("ps", "-a", "--filter", f"name=^{name}$", "--format", "{{.Names}}", check=False)
    return name in proc.stdout.split()


def container_running(name: str) -> bool:
    proc = docker("ps", "--filter", f"name=^{name}$", "--filter", "status=running",
                  "--format", "{{.Names}}", check=False)
    return name in proc.stdout.split()


def container_health(name: str) -> str:
    """'healthy', 'starting', 'unhealthy', a plain state such as 'running', or 'unknown'."""
    try:
        proc = docker("inspect", "--format", HEALTH_FORMAT, name, check=False)
    except FileNotFoundError:
        return "unknown"
    status = proc.stdout.strip() if proc.returncode == 0 else ""
    return status or "unknown"


def poll_until_ready(
    probe: Callable[[], str],
    attempts: int,
    interval: float,
    sleep: Callable[[float], None] = time.sleep
) -> bool:
    """Polls probe() up to attempts times, waiting interval * n between tries."""
    for attempt in range(1, attempts + 1):
        status = probe()
        app_logger.info(f"Health poll {attempt}/{attempts}: {status}")
        if status in READY_STATES:
            return True
        if attempt < attempts:
            sleep(interval * attempt)
    return False


def wait_for_healthy(
    name: str,
    attempts: int = 6,
    interval: float = 5,
    restart: Optional[Callable[[], Any]] = None,
    reinstall: Optional[Callable[[], Any]] = None,
    probe: Optional[Callable[[], str]] = None,
    sleep: Callable[[float], None] = time.sleep
) -> bool:
    """
    Waits for a container to become ready. If it does not, restarts it and
    waits again, then reinstalls it and waits a last time.
    """
    probe = probe or (lambda: container_health(name))
    con.print_info(f"Waiting for the {name} container to report healthy...")
    if poll_until_ready(probe, attempts, interval, sleep):
        con.print_success(f"{name} container is healthy.")
        return True

    escalations = [("restart", restart or (lambda: docker("restart", name, check=False)))]
    if reinstall is not None:
        escalations.append(("reinstall", reinstall))

    for step, action in escalations:
        con.print_warning(f"{name} did not become healthy; trying a {step}...")
        app_logger.warning(f"{name} not healthy, escalating: {step}")
        try:
            action()
        except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired) as e:
            app_logger.error(f"{step} of {name} failed: {e}")
            continue
        if poll_until_ready(probe, attempts, interval, sleep):
            con.print_success(f"{name} container is healthy after a {step}.")
            return True

    con.print_error(f"{name} container did not become healthy.")
    return False


def find_backup_dirs(base: Path) -> List[Path]:
    """backup_NNNNNN directories directly under base, sorted by name."""
    if not base.is_dir():
        return []
    return sorted(p for p in base.iterdir() if p.is_dir() and BACKUP_DIR_PATTERN.match(p.name))


def new_backup_dir(base: Path) -> Path:
    return base / f"backup_{random.randrange(1_000_000):06d}"


def backup_data_dir(data_dir: Path, base: Path) -> Optional[Path]:
    """Moves data_dir aside to a backup_NNNNNN directory. Returns None if there is nothing to move."""
    if not data_dir.is_dir():
        con.print_warning(f"Data directory not found at {data_dir}; skipping backup.")
        return None
    backup_dir = new_backup_dir(base)
    con.print_info(f"Moving {data_dir} to {backup_dir} for backup...")
    util.run_command(["sudo", "rm", "-rf", str(backup_dir)], logger=app_logger)
    util.run_command(["sudo", "mv", str(data_dir), str(backup_dir)], logger=app_logger, print_fn_error=con.print_error)
    return backup_dir


def _is_empty_dir(path: Path) -> bool:
    try:
        return path.is_dir() and not any(path.iterdir())
    except PermissionError:
        return False


def restore_backup(data_dir: Path, base: Path, backup_dir: Optional[Path] = None) -> bool:
    """
    Moves a backup back into place. Uses backup_dir when given, otherwise the
    most recently modified backup_NNNNNN under base.

    An empty data_dir (Docker recreates a missing bind-mount source as an
    empty directory) is replaced. A non-empty data_dir is left untouched, and
    is reported as an error when backup_dir was given explicitly.
    """
    if data_dir.exists() and not _is_empty_dir(data_dir):
        if backup_dir is not None:
            con.print_error(
                f"{data_dir} is not empty; the backup was left in {backup_dir}. "
                "Move it back manually."
            )
            app_logger.error(f"Restore refused: {data_dir} not empty, backup kept at {backup_dir}")
        return False

    candidates = [backup_dir] if backup_dir is not None else find_backup_dirs(base)
    candidates = [c for c in candidates if c.is_dir()]
    if not candidates:
        if backup_dir is not None:
            con.print_error(f"Backup directory {backup_dir} is missing; nothing to restore.")
        else:
            con.print_info("No backup directory found to restore.")
        return False
    source = max(candidates, key=lambda c: c.stat().st_mtime)

    con.print_info(f"Restoring {source} to {data_dir}...")
    try:
        if data_dir.exists():
            # rmdir refuses to delete anything that is not empty.
            util.run_command(["sudo", "rmdir", str(data_dir)], logger=app_logger, print_fn_error=con.print_error)
        util.run_command(["sudo", "mkdir", "-p", str(data_dir.parent)], logger=app_logger)
        util.run_command(["sudo", "mv", str(source), str(data_dir)], logger=app_logger, print_fn_error=con.print_error)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        con.print_error(f"Could not restore {source} to {data_dir}: {e}")
        return False
    app_logger.info(f"Restored {source} to {data_dir}")
    return True


def setup_settings(app_config: Dict[str, Any], name: str) -> Dict[str, Any]:
    return dict(app_config.get("setups", {}).get(name, {}))
