# tests/test_template_configure.py
"""
Test template configuration defaults.
"""

import pytest

from infra_engine.engine import apply_default, field_registry, template_configure
from infra_engine.errors import ConfigurationError
from infra_engine.knowledgebase import Configuration, ResourceTemplate

from mocks import MockResource6, NestedConfig


def _configure(resource, *entries):
    template = ResourceTemplate(
        type=resource.TYPE,
        configuration=[Configuration(field, value) for field, value in entries],
    )
    return template_configure(resource, template)


class TestTemplateConfigure:
    """Tests for applying literal defaults."""

    def test_simple_values(self):
        resource = MockResource6()
        _configure(resource, ("field1", 1), ("field2", "two"), ("field3", True))

        assert resource == MockResource6(field1=1, field2="two", field3=True)

    def test_simple_list(self):
        resource = MockResource6()
        _configure(resource, ("arr1", ["1", "2", "3"]))

        assert resource.arr1 == ["1", "2", "3"]

    def test_list_of_structures(self):
        resource = MockResource6()
        _configure(resource, ("arr2", [
            {"field1": 1, "field2": "two", "field3": True},
            {"field1": 2, "field2": "three", "field3": False},
        ]))

        assert resource.arr2 == [
            NestedConfig(field1=1, field2="two", field3=True),
            NestedConfig(field1=2, field2="three", field3=False),
        ]

    def test_list_of_optional_structures(self):
        resource = MockResource6()
        _configure(resource, ("arr3", [{"field1": 1}, {"field2": "three"}]))

        assert resource.arr3 == [NestedConfig(field1=1), NestedConfig(field2="three")]

    def test_structure(self):
        resource = MockResource6()
        _configure(resource, ("struct1", {
            "field1": 1, "field2": "two", "field3": True, "arr1": ["1", "2", "3"],
        }))

        assert resource.struct1 == NestedConfig(field1=1, field2="two", field3=True, arr1=["1", "2", "3"])

    def test_optional_structure(self):
        resource = MockResource6()
        _configure(resource, ("struct2", {"field1": 1, "arr1": ["1", "2", "3"]}))

        assert resource.struct2 == NestedConfig(field1=1, arr1=["1", "2", "3"])

    def test_optional_structure_sub_field(self):
        resource = MockResource6()
        _configure(resource, ("struct2.field1", 1), ("struct2.arr1", ["1", "2", "3"]))

        assert resource.struct2 == NestedConfig(field1=1, arr1=["1", "2", "3"])

    def test_structure_sub_field(self):
        resource = MockResource6()
        _configure(resource, ("struct1.field1", 1), ("struct1.arr1", ["1", "2", "3"]))

        assert resource.struct1 == NestedConfig(field1=1, arr1=["1", "2", "3"])

    def test_does_not_overwrite_field(self):
        resource = MockResource6(field1=1)
        applied = _configure(resource, ("field1", 5))

        assert resource.field1 == 1
        assert applied == 0

    def test_does_not_append_to_list(self):
        resource = MockResource6(arr1=["1", "2", "3"])
        _configure(resource, ("arr1", ["4"]))

        assert resource.arr1 == ["1", "2", "3"]

    def test_does_not_overwrite_populated_structure(self):
        resource = MockResource6(struct1=NestedConfig(field2="kept"))
        _configure(resource, ("struct1", {"field1": 9}))

        assert resource.struct1 == NestedConfig(field2="kept")

    def test_default_list_is_copied(self):
        default = ["1"]
        resource = MockResource6()
        _configure(resource, ("arr1", default))
        resource.arr1.append("2")

        assert default == ["1"]


class TestConfigurationErrors:
    """Tests for malformed configuration entries."""

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError):
            apply_default(MockResource6(), "missing", 1)

    def test_unknown_nested_key(self):
        with pytest.raises(ConfigurationError):
            apply_default(MockResource6(), "struct2", {"missing": 1})

    def test_path_through_scalar(self):
        with pytest.raises(ConfigurationError):
            apply_default(MockResource6(), "field1.inner", 1)


class TestFieldRegistry:
    """Tests for the cached field registry."""

    def test_registry_resolves_types(self):
        registry = field_registry(MockResource6)

        assert registry["field1"] is int
        assert "PROVIDER" not in registry
        assert field_registry(MockResource6) is registry
