from rich.console import Console
from rich.panel import Panel


def get_display():
    """Get an instance of the AppScopeDisplay class."""
    return AppScopeDisplay()


class AppScopeDisplay:
    """Console output for the maintenance scripts (table creation)."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def header(self, title: str, subtitle: str | None = None):
        body = f"[bold magenta]{title}[/bold magenta]"
        if subtitle:
            body = f"{body}\n{subtitle}"
        self.console.print(Panel(body, expand=False))

    def info(self, message: str):
        self.console.print(f"[bold blue]{message}[/bold blue]")

    def success(self, message: str):
        self.console.print(f"[bold green]{message}[/bold green]")

    def error(self, message: str):
        self.console.print(f"[bold red]{message}[/bold red]")
