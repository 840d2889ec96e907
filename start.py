# EASY/start.py

import sys
from pathlib import Path

# Allow running straight from a checkout: python start.py
sys.path.insert(0, str(Path(__file__).parent))

from easy import console_output as con
from easy.cli import main

if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        con.console.print_exception(show_locals=False)
        con.print_error(f"An unexpected critical error occurred: {e}")
        sys.exit(1)
