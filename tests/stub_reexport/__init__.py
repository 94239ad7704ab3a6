from stub_app.components import constant_value, test_1  # noqa: F401
