# EASY/easy/preflight.py

from pathlib import Path
from typing import Dict, List

from easy import console_output as con
from easy import system_utils as util
from easy.errors import EnvironmentFatalError
from easy.logger_utils import app_logger

REQUIRED_TOOLS = ["git"]


def check_fedora(os_release_path: Path = util.OS_RELEASE_PATH) -> Dict[str, str]:
    """Returns the os-release variables, raising EnvironmentFatalError off Fedora."""
    os_vars = util.read_os_release(os_release_path)
    if os_vars is None:
        raise EnvironmentFatalError("OS detection failed. This script is designed for Fedora only.")
    if os_vars.get("ID") != "fedora":
        raise EnvironmentFatalError(
            f"Sorry, this script is designed for Fedora only. Detected distro: {os_vars.get('ID', 'unknown')}."
        )
    app_logger.info(f"Fedora detected: {os_vars.get('PRETTY_NAME', os_vars.get('VERSION_ID', ''))}")
    return os_vars


def ensure_tools(tools: List[str] = REQUIRED_TOOLS) -> None:
    """Installs any missing tool with dnf; raises EnvironmentFatalError if that fails."""
    missing = [tool for tool in tools if not util.command_exists(tool)]
    if not missing:
        return
    for tool in missing:
        con.print_info(f"{tool} is not installed. Installing {tool} on Fedora...")
    if not util.install_dnf_packages(missing, logger=app_logger, print_fn_error=con.print_error):
        raise EnvironmentFatalError(f"Could not install required tools: {', '.join(missing)}.")
    still_missing = [tool for tool in missing if not util.command_exists(tool)]
    if still_missing:
        raise EnvironmentFatalError(f"Required tools still missing after install: {', '.join(still_missing)}.")


def run_preflight(need_sudo: bool = True) -> Dict[str, str]:
    """OS check, sudo credentials and required tools, in that order."""
    con.print_step("Checking the environment")
    os_vars = check_fedora()
    con.print_sub_step(f"Distro detected: {os_vars.get('PRETTY_NAME', 'Fedora')}")
    if need_sudo and not util.request_sudo(logger=app_logger):
        raise EnvironmentFatalError("sudo permission is required to run the setup scripts.")
    ensure_tools()
    return os_vars
