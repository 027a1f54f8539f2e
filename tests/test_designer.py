"""End-to-end tests for the designer facade: host contract, editor session,
pointer input, and file save/load.
"""
from __future__ import annotations

import json

import pytest

from pretty_erd.codec import DocumentError, serialize
from pretty_erd.designer import DesignerOptions, DiagramDesigner
from pretty_erd.drag import HitTarget
from pretty_erd.renderer import SvgOptions
from pretty_erd.ids import SequentialIdGenerator
from pretty_erd.types import Column, Point, Table


class Host:
    """Collects every document the designer emits."""

    def __init__(self) -> None:
        self.documents: list[str] = []

    def __call__(self, text: str) -> None:
        self.documents.append(text)

    @property
    def last(self) -> dict:
        return json.loads(self.documents[-1])


def make_designer(initial_data: str | None = None, **kwargs) -> tuple[DiagramDesigner, Host]:
    host = Host()
    designer = DiagramDesigner(
        initial_data=initial_data,
        on_change=host,
        id_generator=SequentialIdGenerator(),
        **kwargs,
    )
    return designer, host


def build_orders_and_customers(designer: DiagramDesigner) -> tuple[str, str]:
    """Create Customers(Id) and Orders(Id, CustomerId -> Customers.Id) via the editor."""
    draft = designer.add_table()
    draft.rename("Customers")
    designer.save_table()
    customers_id = draft.id

    draft = designer.add_table()
    draft.rename("Orders")
    col = draft.add_column()
    draft.update_column(
        col.id,
        name="CustomerId",
        data_type="int",
        is_foreign_key=True,
        foreign_key_reference="Customers.Id",
    )
    designer.save_table()
    return draft.id, customers_id


# ============================================================================
# Host contract
# ============================================================================


class TestHostContract:
    def test_emits_empty_document_on_mount(self):
        _, host = make_designer()
        assert host.last == {"tables": [], "relationships": []}

    def test_hydrates_from_initial_document(self):
        table = Table(
            id="t",
            name="Users",
            position=Point(x=5, y=6),
            columns=[Column(id="c", name="Id", data_type="int", is_primary_key=True)],
        )
        designer, host = make_designer(serialize([table], []))
        assert designer.tables == [table]
        assert host.last["tables"][0]["name"] == "Users"

    def test_unrecognised_column_type_does_not_wipe_host_document(self):
        table = Table(
            id="t",
            name="Events",
            position=Point(x=5, y=6),
            columns=[Column(id="c", name="At", data_type="hyperlink")],
        )
        designer, host = make_designer(serialize([table], []))
        assert designer.tables == [table]
        assert host.last["tables"][0]["columns"][0]["type"] == "hyperlink"

    def test_malformed_initial_document_starts_empty(self):
        designer, host = make_designer("{{{")
        assert designer.tables == []
        assert host.last == {"tables": [], "relationships": []}

    def test_every_mutation_emits_the_whole_document(self):
        designer, host = make_designer()
        before = len(host.documents)
        orders_id, customers_id = build_orders_and_customers(designer)
        # add + save for each table
        assert len(host.documents) - before == 4
        doc = host.last
        assert [t["name"] for t in doc["tables"]] == ["Customers", "Orders"]
        assert len(doc["relationships"]) == 1

    def test_document_property_matches_last_emit(self):
        designer, host = make_designer()
        build_orders_and_customers(designer)
        assert designer.document == host.documents[-1]

    def test_works_without_on_change(self):
        designer = DiagramDesigner(id_generator=SequentialIdGenerator())
        designer.add_table()
        designer.save_table()
        assert len(designer.tables) == 1


# ============================================================================
# Editing session
# ============================================================================


class TestEditing:
    def test_add_table_opens_editor_on_seeded_table(self):
        designer, _ = make_designer()
        draft = designer.add_table()
        assert designer.draft is draft
        assert len(designer.tables) == 1
        assert draft.name == "NewTable"
        assert [c.name for c in draft.columns] == ["Id"]

    def test_save_closes_editor(self):
        designer, _ = make_designer()
        designer.add_table()
        designer.save_table()
        assert designer.draft is None

    def test_cancel_discards_draft_changes(self):
        designer, host = make_designer()
        designer.add_table()
        count = len(host.documents)
        designer.draft.rename("Ignored")
        designer.cancel_edit()
        assert designer.tables[0].name == "NewTable"
        assert len(host.documents) == count

    def test_save_without_draft_is_noop(self):
        designer, host = make_designer()
        designer.save_table()
        assert len(host.documents) == 1

    def test_scenario_orders_customers(self):
        designer, host = make_designer()
        orders_id, customers_id = build_orders_and_customers(designer)
        [rel] = host.last["relationships"]
        assert rel["fromTableId"] == orders_id
        assert rel["toTableId"] == customers_id
        assert rel["relationshipType"] == "many-to-one"
        assert rel["direction"] == "unidirectional"
        assert designer.summary() == "2 table(s) | 1 relationship(s)"

    def test_resaving_resets_customized_relationship(self):
        designer, host = make_designer()
        orders_id, _ = build_orders_and_customers(designer)
        rel_id = designer.store.relationships[0].id
        designer.set_relationship_kind(rel_id, cardinality="one-to-one")
        assert host.last["relationships"][0]["relationshipType"] == "one-to-one"

        designer.edit_table(orders_id)
        designer.save_table()
        assert host.last["relationships"][0]["relationshipType"] == "many-to-one"

    def test_delete_table_cascades_and_clears_selection(self):
        designer, host = make_designer()
        orders_id, customers_id = build_orders_and_customers(designer)
        designer.pointer_down(HitTarget("header", customers_id), 110, 110)
        designer.pointer_up()
        designer.delete_table(customers_id)
        assert designer.selected_table_id is None
        assert host.last["relationships"] == []
        assert [t["id"] for t in host.last["tables"]] == [orders_id]

    def test_deleting_table_being_edited_closes_editor(self):
        designer, _ = make_designer()
        draft = designer.add_table()
        designer.delete_table(draft.id)
        assert designer.draft is None


# ============================================================================
# Pointer input
# ============================================================================


class TestPointer:
    def test_drag_moves_table_and_emits(self):
        designer, host = make_designer()
        designer.add_table()
        designer.save_table()
        table_id = designer.tables[0].id
        count = len(host.documents)

        designer.pointer_down(HitTarget("header", table_id), 120, 110)
        designer.pointer_move(150, 90)
        designer.pointer_move(170, 80)
        designer.pointer_up()

        assert designer.tables[0].position == Point(x=150, y=70)
        assert len(host.documents) - count == 2
        assert host.last["tables"][0]["x"] == 150

    def test_batched_drag_emits_once_on_release(self):
        designer, host = make_designer(options=DesignerOptions(emit_on_drag=False))
        designer.add_table()
        designer.save_table()
        table_id = designer.tables[0].id
        count = len(host.documents)

        designer.pointer_down(HitTarget("header", table_id), 120, 110)
        for step in range(5):
            designer.pointer_move(120 + step, 110)
        assert len(host.documents) == count
        designer.pointer_up()
        assert len(host.documents) == count + 1
        assert host.last["tables"][0]["x"] == 104

    def test_drag_does_not_touch_relationships(self):
        designer, _ = make_designer()
        orders_id, _ = build_orders_and_customers(designer)
        rel_before = designer.store.relationships[0]
        designer.pointer_down(HitTarget("header", orders_id), 110, 110)
        designer.pointer_move(300, 300)
        designer.pointer_up()
        assert designer.store.relationships == [rel_before]

    def test_click_canvas_clears_selection(self):
        designer, _ = make_designer()
        designer.add_table()
        designer.save_table()
        designer.pointer_down(HitTarget("header", designer.tables[0].id), 110, 110)
        designer.pointer_up()
        designer.click_canvas()
        assert designer.selected_table_id is None


# ============================================================================
# Views
# ============================================================================


class TestViews:
    def test_connectors_follow_table_positions(self):
        designer, _ = make_designer()
        orders_id, customers_id = build_orders_and_customers(designer)
        designer.store.set_table_position(orders_id, 0, 0)
        designer.store.set_table_position(customers_id, 300, 0)
        [conn] = designer.connectors()
        assert conn.start == Point(x=150, y=40 + 25 + 12.5)
        assert conn.end == Point(x=300, y=40 + 12.5)

    def test_render_svg_highlights_selection(self):
        designer, _ = make_designer()
        designer.add_table()
        designer.save_table()
        designer.pointer_down(HitTarget("header", designer.tables[0].id), 110, 110)
        svg = designer.render_svg()
        assert 'stroke="var(--_selected)"' in svg

    def test_render_svg_leaves_caller_options_untouched(self):
        designer, _ = make_designer()
        designer.add_table()
        designer.save_table()
        table_id = designer.tables[0].id
        options = SvgOptions()

        designer.pointer_down(HitTarget("header", table_id), 110, 110)
        designer.pointer_up()
        assert 'stroke="var(--_selected)"' in designer.render_svg(options)
        assert options.selected_table_id is None

        designer.click_canvas()
        assert 'stroke="var(--_selected)"' not in designer.render_svg(options)

    def test_tables_view_is_detached_from_the_store(self):
        designer, host = make_designer()
        designer.add_table()
        designer.save_table()
        count = len(host.documents)
        designer.tables[0].position.x = 5
        assert designer.tables[0].position.x == 100
        assert len(host.documents) == count

    def test_auto_arrange_moves_tables_without_reinference(self):
        designer, host = make_designer()
        orders_id, customers_id = build_orders_and_customers(designer)
        rel_before = designer.store.relationships
        designer.auto_arrange()
        tables = {t.id: t for t in designer.tables}
        assert tables[customers_id].position.x < tables[orders_id].position.x
        assert designer.store.relationships == rel_before


# ============================================================================
# File save / load
# ============================================================================


class TestFiles:
    def test_save_appends_suffix(self, tmp_path):
        designer, _ = make_designer()
        build_orders_and_customers(designer)
        path = designer.save_diagram(tmp_path / "shop")
        assert path.name == "shop.uml.json"
        assert path.read_text(encoding="utf-8") == designer.document

    def test_save_keeps_existing_suffix(self, tmp_path):
        designer, _ = make_designer()
        path = designer.save_diagram(tmp_path / "shop.uml.json")
        assert path == tmp_path / "shop.uml.json"

    def test_load_replaces_graph_and_emits(self, tmp_path):
        source, _ = make_designer()
        build_orders_and_customers(source)
        path = source.save_diagram(tmp_path / "shop")

        designer, host = make_designer()
        designer.add_table()
        designer.load_diagram(path)
        assert designer.draft is None
        assert designer.document == source.document
        assert host.documents[-1] == source.document

    def test_malformed_file_raises_and_keeps_graph(self, tmp_path):
        designer, host = make_designer()
        build_orders_and_customers(designer)
        before = designer.document
        count = len(host.documents)
        bad = tmp_path / "bad.uml.json"
        bad.write_text('{"tables": [{"id": 1}]}', encoding="utf-8")

        with pytest.raises(DocumentError):
            designer.load_diagram(bad)
        assert designer.document == before
        assert len(host.documents) == count

    def test_missing_file_raises_os_error(self, tmp_path):
        designer, _ = make_designer()
        with pytest.raises(OSError):
            designer.load_diagram(tmp_path / "nope.uml.json")
