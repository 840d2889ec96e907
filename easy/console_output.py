# EASY/easy/console_output.py

import sys
from typing import Any, List, Optional

from rich.console import Console
from rich.padding import Padding
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.rule import Rule
from rich.style import Style
from rich.text import Text

# Single console shared by the runner, the reporters and the setup payloads.
# highlight=False: styling comes from explicit markup only.
console = Console(highlight=False)

PROMPT_STYLE = Style(color="magenta")

# Clears the visible screen and the scrollback buffer (xterm "ED 3").
CLEAR_SCROLLBACK = "\033[3J"


# --- Output Functions ---

def print_info(message: Any, icon: bool = True):
    """Prints an informational message using Rich markup."""
    prefix = "[bold blue]ℹ️ INFO:[/] " if icon else ""
    console.print(f"{prefix}{message}")


def print_warning(message: Any, icon: bool = True):
    """Prints a warning message using Rich markup."""
    prefix = "[bold yellow]⚠️ WARNING:[/] " if icon else ""
    console.print(f"{prefix}{message}")


def print_error(
    message: Any,
    icon: bool = True,
    exit_after: bool = False,
    exit_code: int = 1
):
    """
    Prints an error message using Rich markup.
    Optionally exits the program with the given exit_code.
    """
    prefix = "[bold red]❌ ERROR:[/] " if icon else ""
    console.print(f"{prefix}[bold red]{message}[/]")
    if exit_after:
        console.print(f"[dim red]Exiting with code {exit_code}...[/]")
        sys.exit(exit_code)


def print_success(message: Any, icon: bool = True):
    """Prints a success message using Rich markup."""
    prefix = "[bold green]✅ SUCCESS:[/] " if icon else ""
    console.print(f"{prefix}{message}")


def print_step(title: str, char: str = "="):
    """Prints a major step title, styled as a Rich Rule."""
    console.print(Rule(f"[bold magenta]{title}[/]", style="magenta", characters=char))


def print_sub_step(message: str, indent: int = 2):
    """Prints a sub-step message, slightly indented, with a leading marker."""
    console.print(Padding(f"[bright_blue]❯[/] {message}", (0, 0, 0, indent)))


def print_panel(
    content: Any,
    title: Optional[str] = None,
    style: str = "blue",
    padding: tuple = (1, 2)
):
    """Prints content (text or any Rich renderable) within a Rich Panel."""
    console.print(
        Panel(
            content,
            title=f"[bold]{title}[/]" if title else None,
            border_style=style,
            padding=padding,
            expand=False
        )
    )


def print_rule(title: Optional[str] = None, style: str = "dim white", char: str = "-"):
    """Prints a horizontal rule, optionally with a title."""
    if title:
        console.print(Rule(Text(title, style=style), style=style, characters=char))
    else:
        console.print(Rule(style=style, characters=char))


def clear_screen():
    """Fully clears the terminal, including its scrollback."""
    console.clear()
    if console.is_terminal:
        console.file.write(CLEAR_SCROLLBACK)
        console.file.flush()


def message_box(message: str, title: str = "EASY", style: str = "cyan"):
    """
    Shows a framed message and, on an interactive terminal, waits for Enter
    before returning (the equivalent of a dialog --msgbox).
    """
    print_panel(Text(message, justify="center"), title=title, style=style)
    if console.is_terminal and sys.stdin.isatty():
        console.input("[dim]Press Enter to continue...[/]")


# --- Input Functions ---

def ask_question(
    prompt_message: str,
    default: Optional[str] = None,
    password: bool = False,
    choices: Optional[List[str]] = None
) -> str:
    """
    Asks a question to the user and returns the answer.

    Args:
        prompt_message (str): The message to display for the prompt.
        default (Optional[str]): The default value if the user presses Enter.
        password (bool): If True, input will be hidden.
        choices (Optional[List[str]]): If provided, input is restricted to these choices.

    Returns:
        str: The user's input.
    """
    rich_prompt = Text.assemble(
        ("❓ ", "default"),
        (f"{prompt_message}", PROMPT_STYLE),
    )
    return Prompt.ask(
        rich_prompt,
        console=console,
        default=default,
        password=password,
        choices=choices,
        show_default=bool(default),
    )


def confirm_action(prompt_message: str, default: bool = False) -> bool:
    """Asks a yes/no confirmation question. Returns True if the user confirms."""
    rich_prompt = Text.assemble(
        ("🤔 ", "default"),
        (f"{prompt_message}", PROMPT_STYLE),
    )
    return Confirm.ask(rich_prompt, console=console, default=default)
