# inventory/views.py
import datetime
import os
from pathlib import Path
from typing import Dict, List, Optional

import pytz
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .app import AppState, InventoryApp
from .logger import get_logger
from .models import Item

logger = get_logger(__name__)

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

VIEW_THEME = os.getenv("VIEW_THEME", "light").strip().lower()
if VIEW_THEME not in ("light", "dark"):
    logger.warning("Unknown VIEW_THEME '%s'; using light.", VIEW_THEME)
    VIEW_THEME = "light"

THEMES = {
    "light": {
        "page_bg": "#f5f5f5",
        "card_bg": "#ffffff",
        "card_border": "#e0e0e0",
        "text_primary": "#202124",
        "text_secondary": "#555",
        "text_muted": "#999",
        "error": "#c62828",
        "link_color": "#1a73e8",
    },
    "dark": {
        "page_bg": "#121212",
        "card_bg": "#1E1E1E",
        "card_border": "#333333",
        "text_primary": "#F1F1F1",
        "text_secondary": "#BBBBBB",
        "text_muted": "#777777",
        "error": "#FF6B6B",
        "link_color": "#8AB4F8",
    },
}

TITLE = "Inventory List"


class AddForm:
    """Name and quantity drafts for a new item."""

    def __init__(self, app: InventoryApp):
        self.app = app
        self.name = ""
        self.qty = ""
        self.focus = "name"

    def set_name(self, value: str) -> None:
        self.name = value

    def set_qty(self, value: str) -> None:
        self.qty = value
        self.focus = "qty"

    def submit(self):
        result = self.app.add_item(self.name, self.qty)
        # Drafts clear whatever the remote outcome.
        self.name = ""
        self.qty = ""
        self.focus = "name"
        return result


class EditForm:
    def __init__(self, row: "RowView"):
        self.row = row
        self.value = row.item.qty

    def set_value(self, value: str) -> None:
        self.value = value

    def submit(self):
        value, item = self.value, self.row.item
        self.value = ""
        # Back to display mode before the intent so the next render shows the row.
        self.row.toggle()
        return self.row.app.update_item(item, value)


class RowView:
    """One list row; the editing flag is private to the row."""

    def __init__(self, app: InventoryApp, item: Item):
        self.app = app
        self.item = item
        self.editing = False
        self.edit_form: Optional[EditForm] = None

    def toggle(self) -> None:
        self.editing = not self.editing
        self.edit_form = EditForm(self) if self.editing else None

    def delete(self):
        return self.app.remove_item(self.item.item_id)

    @property
    def line(self) -> str:
        return f"{self.item.name} : {self.item.qty}"

    def context(self) -> Dict[str, object]:
        return {
            "item_id": self.item.item_id,
            "name": self.item.name,
            "qty": self.item.qty,
            "line": self.line,
            "pending": self.item.pending,
            "editing": self.editing,
            "draft": self.edit_form.value if self.edit_form else "",
        }


class ListView:
    """Rows keyed by item identifier, in mirror order."""

    def __init__(self, app: InventoryApp):
        self.app = app
        self.rows: List[RowView] = []

    def sync(self) -> List[RowView]:
        by_id = {row.item.item_id: row for row in self.rows}
        rows = []
        for it in self.app.items:
            row = by_id.get(it.item_id)
            if row is None:
                row = RowView(self.app, it)
            else:
                row.item = it
            rows.append(row)
        self.rows = rows
        return rows

    def row_at(self, position: int) -> RowView:
        """1-based position as shown on screen."""
        if position < 1 or position > len(self.rows):
            raise IndexError(f"No row {position}")
        return self.rows[position - 1]


class InventoryView:
    """
    Root of the view tree. Re-syncs rows on every app change and calls
    on_render (if given) with the freshly rendered text screen.
    """

    def __init__(self, app: InventoryApp, on_render=None, theme: str = VIEW_THEME):
        self.app = app
        self.add_form = AddForm(app)
        self.list_view = ListView(app)
        self.on_render = on_render
        self.theme = theme if theme in THEMES else "light"
        self.list_view.sync()
        self._unsubscribe = app.subscribe(self._changed)

    def _changed(self, _app: InventoryApp) -> None:
        self.list_view.sync()
        if self.on_render is not None:
            self.on_render(self.render_text())

    def close(self) -> None:
        self._unsubscribe()

    @property
    def rows(self) -> List[RowView]:
        return self.list_view.rows

    def _banner(self) -> str:
        if self.app.last_error:
            return self.app.last_error
        if self.app.state is AppState.LOADING:
            return "Loading..."
        if self.app.state is AppState.ERROR:
            return "Could not load items (type 'retry')"
        return ""

    def _context(self) -> Dict[str, object]:
        return {
            "title": TITLE,
            "state": self.app.state.value,
            "banner": self._banner(),
            "rows": [row.context() for row in self.list_view.sync()],
            "add_form": {
                "name": self.add_form.name,
                "qty": self.add_form.qty,
                "focus": self.add_form.focus,
            },
        }

    def render_text(self) -> str:
        template = env.get_template("list_text.txt")
        return template.render(**self._context())

    def render_html(self) -> str:
        template = env.get_template("list.html")
        ctx = self._context()
        ctx["colors"] = THEMES[self.theme]
        ctx["generated_at"] = datetime.datetime.now(tz=pytz.UTC).strftime("%Y-%m-%d %H:%M:%S %Z")
        return template.render(**ctx)

    def write_html(self, path: str) -> str:
        out = Path(path)
        if out.parent and not out.parent.exists():
            out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.render_html(), encoding="utf-8")
        logger.info("Wrote HTML snapshot of %d items to %s", len(self.rows), out)
        return str(out)
