# EASY/easy/system_utils.py

import logging
import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from easy.logger_utils import app_logger as default_script_logger

PRINT_FN_ERROR_DEFAULT: Callable[[str], None] = lambda msg: print(f"ERROR: {msg}", file=sys.stderr)

OS_RELEASE_PATH = Path("/etc/os-release")


def run_command(
    command: Union[str, List[str]],
    capture_output: bool = False,
    check: bool = True,
    shell: bool = False,
    cwd: Optional[Union[str, Path]] = None,
    env_vars: Optional[Dict[str, str]] = None,
    input_text: Optional[str] = None,
    timeout: Optional[float] = None,
    print_fn_info: Optional[Callable[[str], None]] = None,
    print_fn_error: Optional[Callable[[str], None]] = None,
    print_fn_sub_step: Optional[Callable[[str], None]] = None,
    logger: Optional[logging.Logger] = None
) -> subprocess.CompletedProcess:
    """
    Runs a command, logging it along with its stdout/stderr.

    Raises subprocess.CalledProcessError on a non-zero exit when check is
    True, FileNotFoundError when the executable is missing and
    subprocess.TimeoutExpired when timeout elapses.
    """
    log = logger or default_script_logger
    _p_info = print_fn_info or (lambda msg: None)
    _p_error = print_fn_error or PRINT_FN_ERROR_DEFAULT
    _p_sub = print_fn_sub_step or (lambda msg: None)

    if isinstance(command, list):
        display_command_str = subprocess.list2cmdline([str(item) for item in command])
    elif isinstance(command, str):
        display_command_str = command
    else:
        log.error("Invalid command type. Must be string or list.")
        raise TypeError("Command must be a string or list of strings.")

    current_env = os.environ.copy()
    if env_vars:
        current_env.update(env_vars)

    log.info(f"Executing: {display_command_str}")
    _p_info(f"Executing: {display_command_str}")

    try:
        process = subprocess.run(
            command,
            check=False,
            capture_output=capture_output,
            input=input_text,
            text=True,
            shell=shell,
            cwd=str(cwd) if cwd else None,
            env=current_env,
            timeout=timeout
        )
    except FileNotFoundError:
        missing = command[0] if isinstance(command, list) and command else shlex.split(command)[0]
        log.error(f"Command executable not found: '{missing}' (Full command attempted: '{display_command_str}')")
        _p_error(f"Command executable not found: '{missing}'. Ensure it's installed and in PATH.")
        raise
    except subprocess.TimeoutExpired:
        log.error(f"Command '{display_command_str}' timed out after {timeout} seconds.")
        _p_error(f"Command '{display_command_str}' timed out after {timeout} seconds.")
        raise

    if process.stdout and process.stdout.strip():
        log.debug(f"CMD STDOUT for '{display_command_str}':\n{process.stdout.strip()}")
        summary = process.stdout.strip()
        _p_sub(f"STDOUT: {summary[:150] + '...' if len(summary) > 150 else summary}")

    if process.stderr and process.stderr.strip():
        # Some commands write progress to stderr, so this is not an error by itself.
        log.warning(f"CMD STDERR for '{display_command_str}':\n{process.stderr.strip()}")

    if check and process.returncode != 0:
        log.error(f"Command '{display_command_str}' returned non-zero exit status {process.returncode}.")
        _p_error(f"Command failed: '{display_command_str}' (Exit code: {process.returncode}). Check logs.")
        raise subprocess.CalledProcessError(
            returncode=process.returncode,
            cmd=command,
            output=process.stdout,
            stderr=process.stderr
        )

    return process


def command_exists(name: str) -> bool:
    """True if an executable with this name is on PATH."""
    return shutil.which(name) is not None


def parse_os_release(content: str) -> Dict[str, str]:
    """Parses /etc/os-release content (KEY=value lines, values optionally quoted)."""
    os_vars: Dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os_vars[key.strip()] = value.strip().strip('"').strip("'")
    return os_vars


def read_os_release(path: Path = OS_RELEASE_PATH) -> Optional[Dict[str, str]]:
    """Returns the parsed os-release variables, or None if the file is unreadable."""
    if not path.is_file():
        default_script_logger.warning(f"No {path}; OS detection failed.")
        return None
    try:
        return parse_os_release(path.read_text(encoding="utf-8"))
    except OSError as e:
        default_script_logger.warning(f"Could not read {path}: {e}")
        return None


def request_sudo(logger: Optional[logging.Logger] = None) -> bool:
    """Asks for sudo credentials up front (sudo -v) so later steps do not prompt."""
    log = logger or default_script_logger
    if os.geteuid() == 0:
        return True
    try:
        run_command(["sudo", "-v"], logger=log, print_fn_error=lambda msg: None)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        log.error("Could not obtain sudo credentials.")
        return False


def install_dnf_packages(
    packages: List[str],
    capture_output: bool = False,
    print_fn_info: Optional[Callable[[str], None]] = None,
    print_fn_error: Optional[Callable[[str], None]] = None,
    logger: Optional[logging.Logger] = None,
    extra_args: Optional[List[str]] = None
) -> bool:
    """Installs DNF packages with sudo. Returns False if dnf fails."""
    log = logger or default_script_logger
    _p_info = print_fn_info or (lambda msg: None)

    if not packages:
        log.info("No DNF packages specified for installation.")
        return True

    cmd = ["sudo", "dnf", "install", "-y"]
    if extra_args:
        cmd.extend(extra_args)
    cmd.extend(packages)

    packages_str = ', '.join(packages)
    log.info(f"Installing DNF packages: {packages_str}")
    _p_info(f"Installing DNF packages: {packages_str}")
    try:
        run_command(cmd, capture_output=capture_output, print_fn_error=print_fn_error, logger=log)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        log.error(f"Failed to install DNF packages: {packages_str}. Error: {e}")
        return False
    log.info(f"DNF packages processed successfully: {packages_str}")
    return True


def write_system_file(
    path: Path,
    content: str,
    logger: Optional[logging.Logger] = None,
    print_fn_error: Optional[Callable[[str], None]] = None
) -> bool:
    """Writes a root-owned file through 'sudo tee', creating its directory first."""
    log = logger or default_script_logger
    try:
        run_command(["sudo", "mkdir", "-p", str(path.parent)], logger=log, print_fn_error=print_fn_error)
        run_command(
            ["sudo", "tee", str(path)],
            input_text=content,
            capture_output=True,
            logger=log,
            print_fn_error=print_fn_error
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        log.error(f"Failed to write {path}: {e}")
        return False
    log.info(f"Wrote {path}")
    return True


def read_system_file(path: Path, logger: Optional[logging.Logger] = None) -> Optional[str]:
    """Reads a file that may only be readable by root. Returns None if it does not exist."""
    log = logger or default_script_logger
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except PermissionError:
        try:
            proc = run_command(["sudo", "cat", str(path)], capture_output=True, check=False, logger=log)
        except FileNotFoundError:
            return None
        return proc.stdout if proc.returncode == 0 else None


def systemctl(*args: str, check: bool = True, logger: Optional[logging.Logger] = None) -> bool:
    """Runs 'sudo systemctl <args>'. Returns True on exit status 0."""
    log = logger or default_script_logger
    try:
        proc = run_command(["sudo", "systemctl", *args], capture_output=True, check=check, logger=log)
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
    return proc.returncode == 0
