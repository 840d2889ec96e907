# EASY/easy/setups/auto_updates_setup.py

"""Watchtower plus daily security and monthly full system updates."""

import sys
from pathlib import Path
from typing import Any, Dict

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from easy import console_output as con
from easy.config_loader import load_configuration
from easy.errors import ConfigError
from easy.logger_utils import app_logger
from easy.setups import common
from easy.setups import updates


def run(app_config: Dict[str, Any]) -> bool:
    settings = common.setup_settings(app_config, "updates")
    con.print_step("Watchtower and Auto System Updates Setup")

    steps = [
        ("System update", updates.update_system),
        ("Watchtower", lambda: updates.install_watchtower(settings["watchtower_schedule"])),
        ("Security updates", lambda: updates.configure_dnf_automatic(settings["security_update_time"])),
        ("Monthly full updates", lambda: updates.schedule_monthly_full_update(settings["full_update_calendar"])),
    ]
    failed = []
    for name, step in steps:
        if not step():
            app_logger.error(f"Auto-updates step failed: {name}")
            failed.append(name)

    if failed:
        con.print_error(f"Some steps failed: {', '.join(failed)}")
        return False
    con.print_success("Watchtower and auto system updates setup complete.")
    return True


def main() -> int:
    try:
        app_config = load_configuration()
    except ConfigError as e:
        con.print_error(str(e))
        return 1
    if not common.check_fedora():
        return 1
    return 0 if run(app_config) else 1


if __name__ == "__main__":
    sys.exit(main())
