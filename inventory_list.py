import os
import shlex
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, TextIO

from inventory.logger import get_logger
from inventory.app import AppState, InventoryApp
from inventory.views import InventoryView
from stores import build_store

logger = get_logger(__name__)

MODE = os.getenv("MODE", "interactive").lower()  # "interactive", "once" or "html"
STORE_BACKEND = os.getenv("STORE_BACKEND", "http").strip().lower()
HTML_OUT = os.getenv("HTML_OUT", "inventory.html")
BACKGROUND_WRITES = os.getenv("BACKGROUND_WRITES", "true").lower() == "true"

try:
    WRITE_WORKERS = max(1, int(os.getenv("WRITE_WORKERS", "4")))
except ValueError:
    logger.warning("WRITE_WORKERS must be an integer; using 4.")
    WRITE_WORKERS = 4

HELP = """Commands:
  add NAME QTY      add a new item
  edit N            open the quantity editor on row N
  save N QTY        submit the editor on row N
  cancel N          close the editor on row N
  update N QTY      set the quantity of row N
  delete N          delete row N
  retry             reload after a failed load
  refresh           re-read the list from the server
  html [PATH]       write an HTML snapshot
  help              show this help
  quit              exit"""


class CommandError(Exception):
    """Bad command line; shown to the user and otherwise ignored."""


class Console:
    """Turns typed commands into view actions and prints each new screen."""

    def __init__(self, app: InventoryApp, out: TextIO = sys.stdout):
        self.app = app
        self.out = out
        self.view = InventoryView(app, on_render=self.show)
        self.running = True
        self._last_screen = ""
        self.commands: Dict[str, Callable[[List[str]], None]] = {
            "add": self.cmd_add,
            "edit": self.cmd_edit,
            "save": self.cmd_save,
            "cancel": self.cmd_cancel,
            "update": self.cmd_update,
            "delete": self.cmd_delete,
            "retry": self.cmd_retry,
            "refresh": self.cmd_refresh,
            "html": self.cmd_html,
            "help": self.cmd_help,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
        }

    def show(self, screen: str) -> None:
        if screen == self._last_screen:
            return
        self._last_screen = screen
        self.out.write(screen)
        self.out.flush()

    def say(self, message: str) -> None:
        self.out.write(message + "\n")
        self.out.flush()

    def _row(self, arg: str):
        try:
            return self.view.list_view.row_at(int(arg))
        except (ValueError, IndexError):
            raise CommandError(f"No row {arg!r}")

    def _saved_row(self, arg: str):
        row = self._row(arg)
        if row.item.pending:
            raise CommandError(f"Row {arg} is still being saved; try again in a moment")
        return row

    @staticmethod
    def _need(args: List[str], count: int, usage: str) -> None:
        if len(args) != count:
            raise CommandError(f"Usage: {usage}")

    def cmd_add(self, args: List[str]) -> None:
        self._need(args, 2, "add NAME QTY")
        self.view.add_form.set_name(args[0])
        self.view.add_form.set_qty(args[1])
        self.view.add_form.submit()

    def cmd_edit(self, args: List[str]) -> None:
        self._need(args, 1, "edit N")
        row = self._saved_row(args[0])
        if not row.editing:
            row.toggle()
        self.show(self.view.render_text())

    def cmd_save(self, args: List[str]) -> None:
        self._need(args, 2, "save N QTY")
        row = self._saved_row(args[0])
        if not row.editing:
            raise CommandError(f"Row {args[0]} is not being edited (use 'edit {args[0]}')")
        row.edit_form.set_value(args[1])
        row.edit_form.submit()
        self.show(self.view.render_text())

    def cmd_cancel(self, args: List[str]) -> None:
        self._need(args, 1, "cancel N")
        row = self._row(args[0])
        if row.editing:
            row.toggle()
        self.show(self.view.render_text())

    def cmd_update(self, args: List[str]) -> None:
        self._need(args, 2, "update N QTY")
        row = self._saved_row(args[0])
        if not row.editing:
            row.toggle()
        row.edit_form.set_value(args[1])
        row.edit_form.submit()
        self.show(self.view.render_text())

    def cmd_delete(self, args: List[str]) -> None:
        self._need(args, 1, "delete N")
        self._saved_row(args[0]).delete()

    def cmd_retry(self, args: List[str]) -> None:
        self.app.retry()

    def cmd_refresh(self, args: List[str]) -> None:
        added, removed, changed = self.app.refresh()
        if added or removed or changed:
            self.say(f"Server had {len(added)} new, {len(removed)} removed, {len(changed)} changed items.")

    def cmd_html(self, args: List[str]) -> None:
        path = args[0] if args else HTML_OUT
        self.say(f"Wrote {self.view.write_html(path)}")

    def cmd_help(self, args: List[str]) -> None:
        self.say(HELP)

    def cmd_quit(self, args: List[str]) -> None:
        self.running = False

    def handle(self, line: str) -> None:
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.say(f"Could not parse command: {e}")
            return
        if not parts:
            return

        name, args = parts[0].lower(), parts[1:]
        handler = self.commands.get(name)
        if handler is None:
            self.say(f"Unknown command '{name}' (type 'help')")
            return

        self.app.clear_error()
        try:
            handler(args)
        except CommandError as e:
            self.say(str(e))

    def run(self, lines: Iterable[str]) -> None:
        for line in lines:
            # Background write results are applied here, between commands.
            self.app.drain()
            self.handle(line)
            self.app.drain()
            if not self.running:
                break


def make_app(executor=None) -> InventoryApp:
    store = build_store(STORE_BACKEND)
    logger.info("Using %s store backend", STORE_BACKEND)
    return InventoryApp(store, executor=executor)


def run_once(out: TextIO = sys.stdout) -> int:
    app = make_app()
    app.load()
    out.write(InventoryView(app).render_text())
    return 0 if app.state is AppState.READY else 1


def run_html(path: str = HTML_OUT) -> int:
    app = make_app()
    app.load()
    if app.state is not AppState.READY:
        logger.error("Not writing %s: %s", path, app.last_error)
        return 1
    InventoryView(app).write_html(path)
    return 0


def run_interactive(lines: Iterable[str] = sys.stdin, out: TextIO = sys.stdout) -> int:
    executor = ThreadPoolExecutor(max_workers=WRITE_WORKERS) if BACKGROUND_WRITES else None
    app = make_app(executor)
    try:
        console = Console(app, out)
        console.say("Type 'help' for commands.")
        app.load()
        console.run(lines)
    finally:
        if executor is not None:
            executor.shutdown(wait=True)
            app.drain()
    return 0


def main() -> int:
    if MODE == "once":
        return run_once()
    if MODE == "html":
        return run_html()
    if MODE != "interactive":
        logger.warning("Unknown MODE '%s'; running interactive.", MODE)
    return run_interactive()


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        logger.exception("Fatal inventory list error: %s", e)
        raise SystemExit(2)
