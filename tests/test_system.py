import uuid

import pytest

from entwire.builders import make_system
from entwire.domain import ComponentKey, EntityKey, Ref, SlotKey
from entwire.entity import Entity
from entwire.errors import DependencyError, MissingDependencyError, SpecGrammarError
from entwire.lifecycle import KeyHooks, init_system, references, resolve

COMPONENTS = "stub_app.components"


def key(name, scope=COMPONENTS):
    return ComponentKey(scope, name)


@pytest.fixture
def system(settings, registry):
    system = make_system("stub_app", registry=registry, settings=settings)
    yield system
    system.halt()


def test_dependencies_are_initialised_first(system):
    order = system.keys()

    assert order.index(key("db_connection")) < order.index(key("status"))
    assert order.index(key("status")) < order.index(ComponentKey("stub_app.reports", "daily_report"))


def test_components_receive_their_dependencies(system):
    assert system[key("status")]() == {"status": "ok", "connection": {"connected": "ok"}}
    assert system[key("health_check")]({}, {}) == {"status": "ok"}
    assert system[ComponentKey("stub_app.reports", "greeter")].greet() == "Hello, ok"
    assert system[ComponentKey("stub_app.reports", "daily_report")] == {
        "report": {"status": "ok", "connection": {"connected": "ok"}}
    }
    assert system[key("constant_value")] == {"answer": 42}


def test_parent_slots_are_initialised(system):
    single = SlotKey(key("parent_test_component"), (key("single_child"),))
    multi = SlotKey(key("multi_parent_test_component"), (key("test_1"), key("test_2")))

    assert system[single] == "single-child"
    assert system[multi] == {"children": ["test-1", "test-2"]}


def test_halt_runs_halt_hooks(settings, registry):
    system = make_system("stub_app", registry=registry, settings=settings)
    connection = system[key("db_connection")]

    assert not connection.closed
    halted = system.halt()

    assert halted == {key("db_connection"): "closed"}
    assert connection.closed


def test_missing_dependency_fails_at_initialisation(settings, registry):
    with pytest.raises(MissingDependencyError, match="stub_broken/nowhere") as error:
        make_system("stub_broken", registry=registry, settings=settings)

    assert error.value.key == ComponentKey("stub_broken", "orphan")
    assert error.value.dependency == ComponentKey("stub_broken", "nowhere")


def test_entities_are_registered_in_foreign_key_order(settings, registry):
    system = make_system(
        None,
        entity_specs={
            "shop/order": ["order", ["id", {"primary-key?": True}, "int"], ["user", "shop/user"]],
            "shop/user": ["user", ["id", {"primary-key?": True}, "uuid"]],
        },
        registry=registry,
        settings=settings,
    )

    assert system.keys() == [EntityKey("shop/user"), EntityKey("shop/order")]
    assert system[EntityKey("shop/order")] == Entity("shop/order")
    assert system[EntityKey("shop/order")].validate({"id": 1, "user": uuid.uuid4()})


def test_invalid_entity_declaration_aborts_startup(settings, registry):
    with pytest.raises(SpecGrammarError, match="shop/user"):
        make_system("stub_app", entity_specs={"shop/user": ["user", ["id"]]}, registry=registry, settings=settings)


def test_missing_entity_declaration_fails_at_initialisation(settings, registry):
    with pytest.raises(MissingDependencyError):
        make_system(
            None,
            entity_specs={"shop/order": ["order", ["user", "shop/user"]]},
            registry=registry,
            settings=settings,
        )


def recording_hooks(events):
    def init(key, value):
        events.append(("init", key))
        return {"key": key, **value}

    def halt(key, instance):
        events.append(("halt", key))
        return key

    return lambda _: KeyHooks(init, halt)


def test_init_system_resolves_references_and_halts_in_reverse():
    events = []
    config = {
        "c": {"b": Ref("b"), "a": [Ref("a")]},
        "b": {"a": Ref("a")},
        "a": {},
    }

    system = init_system(config, recording_hooks(events))

    assert system["c"]["b"]["a"] == {"key": "a"}
    assert system["c"]["a"] == [{"key": "a"}]
    assert system.halt() == {"c": "c", "b": "b", "a": "a"}
    assert events == [
        ("init", "a"), ("init", "b"), ("init", "c"),
        ("halt", "c"), ("halt", "b"), ("halt", "a"),
    ]


def test_init_system_detects_cycles():
    with pytest.raises(DependencyError, match="Unresolvable dependencies"):
        init_system({"a": {"b": Ref("b")}, "b": {"a": Ref("a")}}, recording_hooks([]))


def test_init_system_keeps_config_order_among_ready_keys():
    events = []
    config = {"z": {}, "m": {"z": Ref("z")}, "a": {}, "self": {"self": Ref("self")}}

    with pytest.raises(DependencyError, match=r"\['self'\]"):
        init_system(config, recording_hooks(events))
    assert events == []

    del config["self"]
    system = init_system(config, recording_hooks(events))

    assert system.keys() == ["z", "a", "m"]


def test_failed_initialisation_halts_what_was_initialised():
    events = []
    hooks = recording_hooks(events)

    def lookup(key):
        if key == "broken":
            return KeyHooks(lambda _, __: 1 / 0)
        return hooks(key)

    with pytest.raises(ZeroDivisionError):
        init_system({"a": {}, "broken": {"a": Ref("a")}}, lookup)

    assert events == [("init", "a"), ("halt", "a")]


def test_references_and_resolve_walk_nested_values():
    value = {"x": Ref("a"), "y": [1, (Ref("b"),)], "z": {"w": Ref("a")}}

    assert references(value) == ["a", "b", "a"]
    assert resolve(value, {"a": 1, "b": 2}) == {"x": 1, "y": [1, (2,)], "z": {"w": 1}}
