# EASY/easy/setups/immich_setup.py

"""Immich photo server: Docker Compose install, health check and automatic updates."""

import subprocess
import sys
from pathlib import Path
from typing import Any, Dict

# Runnable as a plain script from a checkout as well as from an installed package.
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from easy import console_output as con
from easy import system_utils as util
from easy.config_loader import load_configuration
from easy.errors import ConfigError
from easy.logger_utils import app_logger
from easy.setups import common
from easy.setups import updates


def _download(url: str, target: Path) -> None:
    util.run_command(["curl", "-fsSL", "-o", str(target), url], logger=app_logger, print_fn_error=con.print_error)


def compose_up(install_dir: Path, settings: Dict[str, Any]) -> None:
    """Fetches the release compose files and starts the stack."""
    install_dir.mkdir(parents=True, exist_ok=True)
    _download(settings["compose_url"], install_dir / "docker-compose.yml")
    _download(settings["env_url"], install_dir / ".env")
    con.print_info(f"Starting Immich (timeout {settings['compose_timeout']}s)...")
    util.run_command(
        ["sudo", "docker", "compose", "up", "-d"],
        cwd=install_dir, timeout=settings["compose_timeout"],
        logger=app_logger, print_fn_error=con.print_error,
    )


def compose_reinstall(install_dir: Path, settings: Dict[str, Any]) -> None:
    util.run_command(["sudo", "docker", "compose", "down"], cwd=install_dir, check=False, logger=app_logger)
    compose_up(install_dir, settings)


def run(app_config: Dict[str, Any]) -> bool:
    settings = common.setup_settings(app_config, "immich")
    install_dir = Path(settings["install_dir"]).expanduser()
    data_dir = install_dir / "library"
    container = settings["container"]
    con.print_step("Immich Setup")

    if not common.check_fedora():
        return False

    con.print_sub_step("Updating CA certificates...")
    if not util.install_dnf_packages(["ca-certificates"], logger=app_logger, print_fn_error=con.print_error):
        return False
    util.run_command(["sudo", "update-ca-trust", "extract"], check=False, logger=app_logger)

    if not common.ensure_docker():
        return False
    common.ensure_docker_group()
    common.write_docker_daemon_config(app_config.get("setups", {}).get("docker_daemon", {}))

    common.restore_backup(data_dir, install_dir)

    try:
        if common.container_exists(container):
            con.print_success("Immich container already exists; skipping setup.")
        else:
            con.print_warning("Immich not found. Setting it up using the official docker-compose files...")
            compose_up(install_dir, settings)
            con.print_success("Immich setup complete.")
    except subprocess.TimeoutExpired:
        con.print_error("docker compose up timed out.")
        return False
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        con.print_error(f"Immich setup failed: {e}")
        return False

    # The library stays out of the way while images are pulled and containers restarted.
    backup_dir = None
    try:
        if data_dir.is_dir():
            con.print_sub_step("Stopping Immich container to back up the data directory...")
            common.docker("stop", container, check=False)
            backup_dir = common.backup_data_dir(data_dir, install_dir)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        con.print_error(f"Backup of {data_dir} failed: {e}")
        return False

    healthy = False
    restored = True
    try:
        if not common.registry_login(settings["registry"]):
            return False

        image = settings["image"]
        if common.docker("image", "inspect", image, check=False).returncode == 0:
            con.print_success("Immich server image found locally.")
        else:
            con.print_info("Pulling Immich server image...")
            common.docker("pull", image, capture_output=False)

        if not common.container_running(container):
            common.docker("start", container, check=False)
        healthy = common.wait_for_healthy(
            container,
            attempts=settings["health_attempts"],
            interval=settings["health_interval"],
            reinstall=lambda: compose_reinstall(install_dir, settings),
        )
        if not healthy:
            con.print_warning("Immich container is not healthy. Continuing with the update setup.")

        update_settings = common.setup_settings(app_config, "updates")
        con.print_step("Automatic updates", char="-")
        if not (updates.update_system()
                and updates.install_watchtower(update_settings["watchtower_schedule"])
                and updates.configure_dnf_automatic(update_settings["security_update_time"])
                and updates.schedule_monthly_full_update(update_settings["full_update_calendar"])):
            return False
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        con.print_error(f"Immich setup failed: {e}")
        return False
    finally:
        if backup_dir is not None:
            # Starting the container recreates an empty library mount; stop it before swapping back.
            common.docker("stop", container, check=False)
            restored = common.restore_backup(data_dir, install_dir, backup_dir)
            common.docker("start", container, check=False)
            if restored:
                con.print_success("Immich data directory restored.")

    if not restored:
        con.print_error(f"Immich library was not restored; it is still in {backup_dir}.")
        return False

    con.print_panel(
        "Immich setup complete.\n"
        "Docker is installed and running.\n"
        f"Immich container health: {common.container_health(container)}\n"
        "Watchtower is installed for auto-updates.\n"
        "Security updates are configured.\n"
        "Monthly full system updates are scheduled.",
        title="Status Report", style="green",
    )
    return healthy


def main() -> int:
    try:
        app_config = load_configuration()
    except ConfigError as e:
        con.print_error(str(e))
        return 1
    return 0 if run(app_config) else 1


if __name__ == "__main__":
    sys.exit(main())
