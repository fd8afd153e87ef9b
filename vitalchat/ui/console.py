from rich.console import Console
from rich.theme import Theme

theme = Theme({
    "reasoning": "dim italic",
    "error": "red bold",
    "prompt": "bold blue",
    "banner": "dim",
    "status.ok": "green",
    "status.fail": "red",
})

console = Console(theme=theme)
