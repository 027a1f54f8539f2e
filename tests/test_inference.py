"""Tests for relationship inference from foreign-key columns.

Covers: name-based resolution, misses, the many-to-one/unidirectional reset
on re-commit, and swapping in a different resolver.
"""
from __future__ import annotations

import pytest

from pretty_erd.ids import SequentialIdGenerator
from pretty_erd.inference import NameReferenceResolver, RelationshipInferenceEngine
from pretty_erd.store import DiagramStore
from pretty_erd.types import Column, Point, Relationship, Table


def make_customers(table_id: str = "2") -> Table:
    return Table(
        id=table_id,
        name="Customers",
        position=Point(x=400, y=100),
        columns=[Column(id="c_id", name="Id", data_type="int", is_primary_key=True)],
    )


def make_orders(reference: str = "Customers.Id", table_id: str = "1") -> Table:
    return Table(
        id=table_id,
        name="Orders",
        position=Point(x=100, y=100),
        columns=[
            Column(id="o_id", name="Id", data_type="int", is_primary_key=True),
            Column(
                id="o_cust",
                name="CustomerId",
                data_type="int",
                is_foreign_key=True,
                foreign_key_reference=reference,
            ),
        ],
    )


@pytest.fixture
def store() -> DiagramStore:
    return DiagramStore(id_generator=SequentialIdGenerator())


# ============================================================================
# NameReferenceResolver
# ============================================================================


class TestNameReferenceResolver:
    def test_resolves_table_and_column_by_name(self):
        customers = make_customers()
        hit = NameReferenceResolver().resolve("Customers.Id", [customers])
        assert hit is not None
        assert hit[0] is customers
        assert hit[1].id == "c_id"

    def test_first_table_with_matching_name_wins(self):
        first = make_customers("a")
        second = make_customers("b")
        hit = NameReferenceResolver().resolve("Customers.Id", [first, second])
        assert hit is not None
        assert hit[0].id == "a"

    def test_reference_without_dot_resolves_nothing(self):
        assert NameReferenceResolver().resolve("Customers", [make_customers()]) is None

    def test_extra_segments_are_ignored(self):
        hit = NameReferenceResolver().resolve("Customers.Id.extra", [make_customers()])
        assert hit is not None

    def test_names_are_case_sensitive(self):
        assert NameReferenceResolver().resolve("customers.id", [make_customers()]) is None

    def test_unknown_column_resolves_nothing(self):
        assert NameReferenceResolver().resolve("Customers.Email", [make_customers()]) is None


# ============================================================================
# Inference through the store
# ============================================================================


class TestInference:
    def test_orders_customers_scenario(self, store):
        store.add_table(make_customers())
        store.update_table(make_orders())

        rels = store.relationships
        assert len(rels) == 1
        assert rels[0].from_table_id == "1"
        assert rels[0].to_table_id == "2"
        assert rels[0].from_column_id == "o_cust"
        assert rels[0].to_column_id == "c_id"
        assert rels[0].cardinality == "many-to-one"
        assert rels[0].direction == "unidirectional"

    def test_fk_to_missing_table_produces_nothing(self, store):
        store.update_table(make_orders("Nowhere.Id"))
        assert store.relationships == []

    def test_fk_to_missing_column_produces_nothing(self, store):
        store.add_table(make_customers())
        store.update_table(make_orders("Customers.Email"))
        assert store.relationships == []

    def test_column_not_flagged_as_fk_is_ignored(self, store):
        store.add_table(make_customers())
        orders = make_orders()
        orders.columns[1].is_foreign_key = False
        store.update_table(orders)
        assert store.relationships == []

    def test_empty_reference_is_ignored(self, store):
        store.add_table(make_customers())
        store.update_table(make_orders(""))
        assert store.relationships == []

    def test_recommit_replaces_outgoing_relationships(self, store):
        store.add_table(make_customers())
        store.update_table(make_orders())
        first_id = store.relationships[0].id
        store.update_table(make_orders())

        rels = store.relationships
        assert len(rels) == 1
        assert rels[0].id != first_id

    def test_recommit_resets_customized_cardinality_and_direction(self, store):
        # Known quirk: re-saving a table discards relationship customizations
        store.add_table(make_customers())
        store.update_table(make_orders())
        rel_id = store.relationships[0].id
        store.set_relationship_kind(rel_id, cardinality="one-to-one", direction="bidirectional")
        assert store.relationships[0].cardinality == "one-to-one"

        store.update_table(make_orders())
        rel = store.relationships[0]
        assert rel.cardinality == "many-to-one"
        assert rel.direction == "unidirectional"

    def test_incoming_relationships_are_left_alone(self, store):
        store.add_table(make_customers())
        store.update_table(make_orders())
        before = store.relationships

        # Re-commit the referenced table with the referenced column renamed
        customers = make_customers()
        customers.columns[0].name = "CustomerKey"
        store.update_table(customers)

        assert store.relationships == before

    def test_renaming_referenced_table_breaks_next_inference(self, store):
        store.add_table(make_customers())
        store.update_table(make_orders())

        renamed = make_customers()
        renamed.name = "Clients"
        store.update_table(renamed)
        store.update_table(make_orders())

        assert store.relationships == []

    def test_self_reference_resolves_against_committed_table(self, store):
        employees = Table(
            id="e",
            name="Employees",
            columns=[
                Column(id="e_id", name="Id", data_type="int", is_primary_key=True),
                Column(
                    id="e_mgr",
                    name="ManagerId",
                    data_type="int",
                    is_foreign_key=True,
                    foreign_key_reference="Employees.Id",
                ),
            ],
        )
        store.update_table(employees)
        rels = store.relationships
        assert len(rels) == 1
        assert rels[0].from_table_id == rels[0].to_table_id == "e"

    def test_one_relationship_per_fk_column_in_column_order(self, store):
        store.add_table(make_customers())
        store.add_table(
            Table(
                id="3",
                name="Stores",
                columns=[Column(id="s_id", name="Id", data_type="int", is_primary_key=True)],
            )
        )
        orders = make_orders()
        orders.columns.append(
            Column(
                id="o_store",
                name="StoreId",
                data_type="int",
                is_foreign_key=True,
                foreign_key_reference="Stores.Id",
            )
        )
        store.update_table(orders)
        assert [r.to_table_id for r in store.relationships] == ["2", "3"]


# ============================================================================
# Resolver injection
# ============================================================================


class _IdResolver:
    """Resolves "<table_id>.<column_id>" instead of names."""

    def resolve(self, reference, tables):
        table_id, _, column_id = reference.partition(".")
        for t in tables:
            if t.id == table_id:
                col = t.find_column(column_id)
                return (t, col) if col is not None else None
        return None


class TestResolverInjection:
    def test_engine_uses_injected_resolver(self):
        engine = RelationshipInferenceEngine(SequentialIdGenerator(), _IdResolver())
        customers = make_customers()
        orders = make_orders("2.c_id")
        rels = engine.infer(orders, [orders, customers])
        assert len(rels) == 1
        assert rels[0].to_column_id == "c_id"

    def test_recompute_keeps_relationships_of_other_tables(self):
        engine = RelationshipInferenceEngine(SequentialIdGenerator())
        other = Relationship(
            id="keep",
            from_table_id="9",
            from_column_id="x",
            to_table_id="1",
            to_column_id="o_id",
        )
        stale = Relationship(
            id="drop",
            from_table_id="1",
            from_column_id="o_cust",
            to_table_id="2",
            to_column_id="c_id",
        )
        result = engine.recompute(make_orders(), [make_customers()], [other, stale])
        assert result[0].id == "keep"
        assert [r.id for r in result[1:]] == ["rel_1"]
