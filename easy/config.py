# EASY/easy/config.py

from pathlib import Path

# --- Constants ---
APP_TITLE = "E.A.S.Y. - Effortless Automated Self-hosting for You"
BACKTITLE = "EASY Checklist"

REPO_URL = "https://github.com/doughty247/EASY.git"
TARGET_DIR = Path.home() / "EASY"

CONFIG_FILE_NAME = "easy.json"
USER_CONFIG_PATH = Path.home() / ".config" / "easy" / CONFIG_FILE_NAME

# Bundled payloads (easy/setups/*_setup.py)
BUILTIN_SETUPS_DIR = Path(__file__).resolve().parent / "setups"

SCRIPT_SUFFIXES = ["_setup.sh", "_setup.py"]

PROGRESS_MODES = {
    "silent": "Quiet, with a spinner while long commands run",
    "passthrough": "Show the full script output",
    "gauge": "Percentage gauge",
    "tail": "Live panel with the last lines of output",
    "fifo": "Live panel streamed through a named pipe",
}

SORT_MODES = ("alphabetical", "discovery")

# Non-item checklist rows: token -> description
ADVANCED_TOKEN = "adv"
SHOW_OUTPUT_TOKEN = "out"
SPECIAL_TOKENS = {
    ADVANCED_TOKEN: "Advanced options",
    SHOW_OUTPUT_TOKEN: "Show script output",
}

# Exit status recorded when a script cannot be started at all.
EXIT_NOT_EXECUTABLE = 127

DEFAULT_SETTINGS = {
    "repo_url": REPO_URL,
    "target_dir": str(TARGET_DIR),
    "script_source": "repo",
    "script_suffixes": list(SCRIPT_SUFFIXES),
    "sort_mode": "alphabetical",
    "default_selected": False,
    "show_advanced_toggle": True,
    "progress_mode": "passthrough",
    "continue_on_failure": True,
    "confirm_each": False,
    "pause_after_each": True,
    "clear_between": True,
    "tail_lines": 10,
    "poll_interval": 0.5,
    "spinner_triggers": ["dnf ", "docker pull", "docker compose", "docker run", "git clone", "curl "],
    "spinner_duration": 3.0,
    "setups": {
        "immich": {
            "install_dir": "~/immich",
            "container": "immich_server",
            "image": "ghcr.io/immich-app/immich-server:release",
            "compose_url": "https://github.com/immich-app/immich/releases/latest/download/docker-compose.yml",
            "env_url": "https://github.com/immich-app/immich/releases/latest/download/example.env",
            "registry": "ghcr.io",
            "compose_timeout": 30,
            "health_attempts": 6,
            "health_interval": 5,
        },
        "nextcloud": {
            "container": "nextcloud",
            "image": "nextcloud:latest",
            "port": 8080,
            "volume": "nextcloud_data",
            "health_attempts": 6,
            "health_interval": 5,
        },
        "updates": {
            "watchtower_schedule": "0 0 * * *",
            "security_update_time": "03:00:00",
            "full_update_calendar": "*-*-01 04:00:00",
        },
        "docker_daemon": {
            "live-restore": True,
            "log-driver": "json-file",
            "log-opts": {"max-size": "10m", "max-file": "3"},
        },
    },
}
