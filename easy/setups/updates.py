# EASY/easy/setups/updates.py

import configparser
import io
import subprocess
from pathlib import Path
from typing import Optional

from easy import console_output as con
from easy import system_utils as util
from easy.logger_utils import app_logger

AUTOMATIC_CONF = Path("/etc/dnf/automatic.conf")
AUTOMATIC_TIMER_OVERRIDE = Path("/etc/systemd/system/dnf-automatic.timer.d/override.conf")
FULL_UPDATE_SERVICE = Path("/etc/systemd/system/full-update.service")
FULL_UPDATE_TIMER = Path("/etc/systemd/system/full-update.timer")

SECURITY_SETTINGS = {
    "upgrade_type": "security",
    "apply_updates": "yes",
    "reboot": "True",
}


def update_system() -> bool:
    con.print_sub_step("Updating Fedora packages...")
    try:
        util.run_command(["sudo", "dnf", "update", "-y"], logger=app_logger, print_fn_error=con.print_error)
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
    return True


def install_watchtower(schedule: str = "0 0 * * *") -> bool:
    """(Re)creates the Watchtower container that keeps the other containers updated."""
    con.print_sub_step("Setting up Watchtower for container auto-updates...")
    try:
        existing = util.run_command(
            ["sudo", "docker", "ps", "-a", "--filter", "name=^watchtower$", "--format", "{{.Names}}"],
            capture_output=True, check=False, logger=app_logger,
        )
        if "watchtower" in existing.stdout.split():
            con.print_sub_step("Removing existing Watchtower container...")
            util.run_command(["sudo", "docker", "rm", "-f", "watchtower"], capture_output=True, logger=app_logger)
        util.run_command(
            ["sudo", "docker", "run", "-d", "--name", "watchtower", "--restart", "always",
             "-v", "/var/run/docker.sock:/var/run/docker.sock",
             "containrrr/watchtower", "--schedule", schedule, "--cleanup", "--include-restarting"],
            capture_output=True, logger=app_logger, print_fn_error=con.print_error,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
    con.print_success("Watchtower setup complete.")
    return True


def render_automatic_conf(existing: Optional[str]) -> str:
    """
    dnf-automatic configuration that applies security updates only and
    reboots when needed. Other sections and keys of an existing file are kept.
    """
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str
    if existing:
        parser.read_string(existing)
    if not parser.has_section("commands"):
        parser.add_section("commands")
    for key, value in SECURITY_SETTINGS.items():
        parser.set("commands", key, value)
    if not parser.has_section("emitters"):
        parser.add_section("emitters")
        parser.set("emitters", "emit_via", "stdio")
    out = io.StringIO()
    parser.write(out)
    return out.getvalue()


def render_timer_override(time_of_day: str = "03:00:00") -> str:
    # The empty OnCalendar= clears the schedule shipped with the unit.
    return f"[Timer]\nOnCalendar=\nOnCalendar=*-*-* {time_of_day}\n"


def render_full_update_service() -> str:
    return (
        "[Unit]\n"
        "Description=Full System Update Service\n"
        "\n"
        "[Service]\n"
        "Type=oneshot\n"
        "ExecStart=/usr/bin/dnf upgrade -y\n"
    )


def render_full_update_timer(calendar: str = "*-*-01 04:00:00") -> str:
    return (
        "[Unit]\n"
        "Description=Timer for Full System Update Service\n"
        "\n"
        "[Timer]\n"
        f"OnCalendar={calendar}\n"
        "Persistent=true\n"
        "\n"
        "[Install]\n"
        "WantedBy=timers.target\n"
    )


def configure_dnf_automatic(time_of_day: str = "03:00:00") -> bool:
    """Daily security-only updates through dnf-automatic."""
    con.print_sub_step("Configuring security updates with dnf-automatic...")
    if not util.install_dnf_packages(["dnf-automatic"], logger=app_logger, print_fn_error=con.print_error):
        return False
    existing = util.read_system_file(AUTOMATIC_CONF, logger=app_logger)
    if existing is None:
        con.print_sub_step(f"{AUTOMATIC_CONF} not found. Creating default configuration...")
    try:
        content = render_automatic_conf(existing)
    except configparser.Error as e:
        app_logger.warning(f"Could not parse {AUTOMATIC_CONF} ({e}); writing a fresh one.")
        content = render_automatic_conf(None)
    if not (util.write_system_file(AUTOMATIC_CONF, content, logger=app_logger)
            and util.write_system_file(AUTOMATIC_TIMER_OVERRIDE, render_timer_override(time_of_day), logger=app_logger)):
        return False
    if not (util.systemctl("daemon-reload", logger=app_logger)
            and util.systemctl("enable", "--now", "dnf-automatic.timer", logger=app_logger)):
        con.print_error("Could not enable dnf-automatic.timer.")
        return False
    con.print_success(f"dnf-automatic is configured for daily {time_of_day} security updates.")
    return True


def schedule_monthly_full_update(calendar: str = "*-*-01 04:00:00") -> bool:
    """Monthly 'dnf upgrade -y' through a systemd service and timer."""
    con.print_sub_step("Setting up monthly full system updates...")
    if not (util.write_system_file(FULL_UPDATE_SERVICE, render_full_update_service(), logger=app_logger)
            and util.write_system_file(FULL_UPDATE_TIMER, render_full_update_timer(calendar), logger=app_logger)):
        return False
    if not (util.systemctl("daemon-reload", logger=app_logger)
            and util.systemctl("enable", "--now", "full-update.timer", logger=app_logger)):
        con.print_error("Could not enable full-update.timer.")
        return False
    con.print_success(f"Monthly full system update timer set ({calendar}).")
    return True
