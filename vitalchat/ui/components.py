from rich.panel import Panel
from rich.text import Text

from vitalchat.providers.base import ConnectionStatus


def reasoning_panel(text: str, collapsed: bool = True) -> Panel:
    """Render the reasoning channel as a dim panel.

    Collapsed, only a one-line summary is shown.
    """
    if collapsed:
        body = Text(f"Reasoning ({len(text)} chars)", style="reasoning")
    else:
        body = Text(text, style="reasoning")
    return Panel(
        body,
        title="Reasoning",
        title_align="left",
        border_style="dim",
        expand=False,
    )


def error_panel(text: str) -> Panel:
    """Render an error message as a red-bordered panel."""
    return Panel(
        Text(text, style="error"),
        title="Error",
        border_style="red",
        expand=False,
    )


def provider_banner(provider: str, model: str) -> Text:
    return Text(f"Provider: {provider} | Model: {model}", style="banner")


def connection_line(provider: str, status: ConnectionStatus) -> Text:
    style = "status.ok" if status.success else "status.fail"
    return Text(f"{provider}: {status.message}", style=style)
