"""Reusable header widget for consistent visual style across modes."""
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.css.query import NoMatches
from textual.widgets import Static


class HeaderWidget(Vertical):
    """A boxed title with an optional status line underneath."""

    DEFAULT_CSS = """
    HeaderWidget {
        width: 100%;
        height: auto;
        align: center top;
        margin-bottom: 1;
    }

    .header-boxed {
        width: auto;
        height: auto;
        text-align: center;
        color: $accent;
    }

    #header-status {
        width: 100%;
        text-align: center;
        content-align: center middle;
    }
    """

    def __init__(self, title: str, subtitle: str = "", box_width: int = 48, **kwargs):
        super().__init__(**kwargs)
        self.title_text = title
        self.subtitle_text = subtitle
        self.box_width = box_width

    def compose(self) -> ComposeResult:
        with Center():
            yield Static(boxed_title(self.title_text, self.box_width), classes="header-boxed")
        with Center():
            yield Static(self._status_markup(self.subtitle_text), id="header-status")

    @staticmethod
    def _status_markup(text: str) -> str:
        return f"[italic #666666]{text}[/]" if text else ""

    def update_subtitle(self, new_subtitle: str):
        """Update the status line (no-op before the widget is composed)."""
        try:
            status_label = self.query_one("#header-status", Static)
        except NoMatches:
            return
        status_label.update(self._status_markup(new_subtitle))


def boxed_title(title: str, width: int = 48) -> str:
    """Title centred in a double-line box."""
    title_padded = f" {title} "
    inner_width = max(width - 2, len(title_padded))
    padding = inner_width - len(title_padded)
    left_pad = padding // 2
    right_pad = padding - left_pad

    top = f"╔{'═' * inner_width}╗"
    mid = f"║{' ' * left_pad}{title_padded}{' ' * right_pad}║"
    bottom = f"╚{'═' * inner_width}╝"
    return f"{top}\n{mid}\n{bottom}"
