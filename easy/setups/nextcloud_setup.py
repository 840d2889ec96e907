# EASY/easy/setups/nextcloud_setup.py

"""Nextcloud in a single Docker container with a named data volume."""

import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from easy import console_output as con
from easy.config_loader import load_configuration
from easy.errors import ConfigError
from easy.setups import common
from easy.setups import updates


def run_args(settings: Dict[str, Any]) -> List[str]:
    """Arguments for 'docker run' that create the Nextcloud container."""
    return [
        "run", "-d",
        "--name", settings["container"],
        "-p", f"{settings['port']}:80",
        "-v", f"{settings['volume']}:/var/www/html",
        "--restart", "unless-stopped",
        settings["image"],
    ]


def recreate_container(settings: Dict[str, Any]) -> None:
    # The data lives in the named volume, so removing the container keeps it.
    common.docker("rm", "-f", settings["container"], check=False)
    common.docker("pull", settings["image"], capture_output=False)
    common.docker(*run_args(settings))


def run(app_config: Dict[str, Any]) -> bool:
    settings = common.setup_settings(app_config, "nextcloud")
    container = settings["container"]
    con.print_step("Nextcloud Setup")

    if not common.check_fedora() or not common.ensure_docker():
        return False
    common.ensure_docker_group()

    try:
        if common.container_exists(container):
            con.print_success("Nextcloud container already exists; skipping setup.")
            if not common.container_running(container):
                common.docker("start", container, check=False)
        else:
            con.print_info(f"Creating the Nextcloud container on port {settings['port']}...")
            common.docker("pull", settings["image"], capture_output=False)
            common.docker(*run_args(settings))

        healthy = common.wait_for_healthy(
            container,
            attempts=settings["health_attempts"],
            interval=settings["health_interval"],
            reinstall=lambda: recreate_container(settings),
        )

        update_settings = common.setup_settings(app_config, "updates")
        watchtower_ok = updates.install_watchtower(update_settings["watchtower_schedule"])
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        con.print_error(f"Nextcloud setup failed: {e}")
        return False

    con.print_panel(
        f"Nextcloud container '{container}': {common.container_health(container)}\n"
        f"Open http://localhost:{settings['port']} to finish the installation.\n"
        f"Watchtower: {'installed' if watchtower_ok else 'not installed'}",
        title="Status Report", style="green" if healthy else "red",
    )
    return healthy and watchtower_ok


def main() -> int:
    try:
        app_config = load_configuration()
    except ConfigError as e:
        con.print_error(str(e))
        return 1
    return 0 if run(app_config) else 1


if __name__ == "__main__":
    sys.exit(main())
