import uuid

import pytest

from entwire.domain import EntityKey, Ref
from entwire.entity import Entity, create_entity, entity_config, init_entity, prep_entity
from entwire.errors import DataValidationError, SpecGrammarError

CUSTOMER = [
    "customer",
    {"table": "customers"},
    ["id", {"primary-key?": True}, "uuid"],
    ["name", "string"],
]

INVOICE = [
    "invoice",
    {"table": "invoices"},
    ["id", {"primary-key?": True}, "int"],
    ["customer", {"many-to-one?": True}, "billing/customer"],
    ["seller", {"one-to-one?": True}, "billing/seller"],
    ["notes", {"one-to-many?": True}, "billing/note"],
]


def test_create_entity_returns_handle_bound_to_registry(registry):
    customer = create_entity("billing/customer", CUSTOMER, registry)

    assert customer == Entity("billing/customer")
    assert customer.registry is registry
    assert "billing/customer" in registry


def test_handle_queries_the_registry(registry):
    customer = create_entity("billing/customer", CUSTOMER, registry)
    invoice = create_entity("billing/invoice", INVOICE, registry)
    customer_id = uuid.uuid4()

    assert customer.columns() == ["id", "name"]
    assert customer.values({"name": "Ada", "id": customer_id}) == (customer_id, "Ada")
    assert customer.prop("table") == "customers"
    assert customer.identity_field() is None
    assert invoice.depends_on(customer)
    assert not customer.depends_on(invoice)
    assert [name for name, _ in invoice.fields()] == ["id", "customer", "seller"]
    assert customer.validate({"id": customer_id, "name": "Ada"})

    with pytest.raises(DataValidationError):
        customer.validate({"id": customer_id})


def test_prep_entity_references_required_dependencies():
    value = prep_entity("billing/invoice", INVOICE)

    assert set(value) == {"spec", "billing/customer", "billing/seller"}
    assert value["billing/customer"] == Ref(EntityKey("billing/customer"))
    assert value["billing/seller"] == Ref(EntityKey("billing/seller"))
    assert value["spec"].properties == {"table": "invoices"}


def test_prep_entity_rejects_invalid_spec():
    with pytest.raises(SpecGrammarError, match="Invalid spec schema for entity billing/invoice") as error:
        prep_entity("billing/invoice", ["invoice", ["id", "integer"]])

    assert error.value.errors == {0: {"type": ["unknown type 'integer'"]}}


def test_init_entity_registers_prepared_spec(registry):
    value = prep_entity("billing/customer", CUSTOMER)

    customer = init_entity("billing/customer", value, registry)

    assert customer.type == "billing/customer"
    assert registry.schema("billing/customer") == value["spec"]


def test_entity_config_keys_declarations_by_entity_type():
    config = entity_config({"billing/customer": CUSTOMER, "billing/invoice": INVOICE})

    assert set(config) == {EntityKey("billing/customer"), EntityKey("billing/invoice")}
    assert config[EntityKey("billing/customer")].keys() == {"spec"}
