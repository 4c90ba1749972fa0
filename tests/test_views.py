from bs4 import BeautifulSoup

from inventory.app import InventoryApp
from inventory.views import InventoryView

from conftest import FlakyStore


def test_loaded_list_renders_one_row(ready_app):
    view = InventoryView(ready_app)
    assert [row.line for row in view.rows] == ["Bolts : 10"]
    assert "1. Bolts : 10" in view.render_text()


def test_view_rerenders_on_every_change(app):
    screens = []
    InventoryView(app, on_render=screens.append)
    app.load()
    assert "Loading..." in screens[0]
    assert "1. Bolts : 10" in screens[-1]


def test_empty_list_text(store):
    store.delete("1")
    view = InventoryView(InventoryApp(store))
    view.app.load()
    assert "(no items)" in view.render_text()


def test_add_form_submits_and_resets_drafts(ready_app):
    view = InventoryView(ready_app)
    form = view.add_form
    form.set_name("Nails")
    form.set_qty("5")
    assert form.focus == "qty"

    form.submit()

    assert (form.name, form.qty, form.focus) == ("", "", "name")
    assert [row.line for row in view.rows] == ["Bolts : 10", "Nails : 5"]


def test_add_form_resets_even_when_create_fails(ready_app, store):
    store.failing.add("create")
    view = InventoryView(ready_app)
    view.add_form.set_name("Nails")
    view.add_form.set_qty("5")
    view.add_form.submit()

    assert (view.add_form.name, view.add_form.qty) == ("", "")
    assert len(view.rows) == 1
    assert "Could not add 'Nails'" in view.render_text()


def test_edit_form_is_seeded_and_returns_row_to_display(ready_app):
    view = InventoryView(ready_app)
    row = view.rows[0]
    row.toggle()
    assert row.editing
    assert row.edit_form.value == "10"
    assert "Bolts [10] Press Enter to Update" in view.render_text()

    row.edit_form.set_value("20")
    row.edit_form.submit()

    assert not row.editing
    assert view.rows[0].line == "Bolts : 20"


def test_row_edit_flag_survives_other_changes(ready_app):
    view = InventoryView(ready_app)
    bolts_row = view.rows[0]
    bolts_row.toggle()

    ready_app.add_item("Nails", "5")

    assert view.rows[0] is bolts_row
    assert view.rows[0].editing
    assert not view.rows[1].editing


def test_row_delete(ready_app):
    view = InventoryView(ready_app)
    view.rows[0].delete()
    assert view.rows == []


def test_error_banner_after_failed_load():
    store = FlakyStore()
    store.failing.add("list_all")
    app = InventoryApp(store)
    app.load()
    text = InventoryView(app).render_text()
    assert "! Could not load items" in text


def test_html_snapshot_lists_items_escaped(ready_app):
    ready_app.add_item("<b>Glue</b>", "1")
    view = InventoryView(ready_app, theme="dark")
    soup = BeautifulSoup(view.render_html(), "html.parser")

    rows = soup.select("ul.items li")
    assert [li["data-id"] for li in rows] == ["1", "2"]
    assert rows[0].select_one(".name").get_text() == "Bolts"
    assert rows[1].select_one(".name").get_text() == "<b>Glue</b>"
    assert soup.find("b") is None
    assert "2 items" in soup.select_one(".footer").get_text()


def test_write_html(tmp_path, ready_app):
    out = tmp_path / "snap" / "inventory.html"
    InventoryView(ready_app).write_html(str(out))
    assert "Bolts" in out.read_text(encoding="utf-8")
