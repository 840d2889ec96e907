# EASY/easy/repo_sync.py

import os
import subprocess
from pathlib import Path

from easy import console_output as con
from easy import system_utils as util
from easy.errors import EnvironmentFatalError
from easy.logger_utils import app_logger


def sync_repository(repo_url: str, target_dir: Path) -> Path:
    """
    Clones repo_url into target_dir. An existing copy is removed first
    (with sudo, since payloads may leave root-owned files behind) and cloned
    again, so the scripts always match the remote.
    """
    target_dir = Path(target_dir).expanduser()
    try:
        if target_dir.exists():
            con.print_info(f"Repository found in {target_dir}. Updating repository...")
            # Step out of the directory before it is deleted.
            if Path.cwd().resolve().is_relative_to(target_dir.resolve()):
                os.chdir(Path.home())
            util.run_command(["sudo", "rm", "-rf", str(target_dir)], logger=app_logger, print_fn_error=con.print_error)
        else:
            con.print_info(f"Cloning repository from {repo_url} into {target_dir}...")
        util.run_command(["git", "clone", repo_url, str(target_dir)], logger=app_logger, print_fn_error=con.print_error)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise EnvironmentFatalError(f"Could not fetch the setup scripts from {repo_url}: {e}") from e

    app_logger.info(f"Repository synced to {target_dir}")
    return target_dir
