"""
Tests for the object schema algebra: extend, merge, pick, omit, partial,
required and deep_partial.
"""

import pytest

import schemata as s
from schemata import Err, Ok, OptionalSchema, SchemaDefinitionError


@pytest.fixture
def user():
    return s.object(
        {
            "name": s.string().min(1),
            "email": s.string().email(),
            "address": s.object({"city": s.string(), "zip": s.string().length(5)}),
        }
    )


class TestExtend:
    def test_adds_fields(self, user):
        admin = s.extend(user, {"role": s.literal("admin")})
        assert list(admin.fields) == ["name", "email", "address", "role"]
        assert "role" not in user.fields

    def test_collision_replaces_field(self, user):
        loose = user.extend({"email": s.string()})
        data = {"name": "a", "email": "x", "address": {"city": "c", "zip": "12345"}}
        assert isinstance(loose.safe_parse(data), Ok)

    def test_keeps_policy(self, user):
        strict = user.strict().extend({"age": s.number()})
        data = {
            "name": "a",
            "email": "a@b.co",
            "address": {"city": "c", "zip": "12345"},
            "age": 1,
            "x": 1,
        }
        assert isinstance(strict.safe_parse(data), Err)

    def test_requires_object(self):
        with pytest.raises(SchemaDefinitionError):
            s.extend(s.string(), {"a": s.string()})


class TestMerge:
    def test_second_wins(self):
        first = s.object({"a": s.string(), "b": s.string()})
        second = s.object({"b": s.number()}).strict()
        merged = s.merge(first, second)
        assert merged.parse({"a": "x", "b": 1}) == {"a": "x", "b": 1}
        assert isinstance(merged.safe_parse({"a": "x", "b": 1, "c": 0}), Err)

    def test_method_form(self):
        merged = s.object({"a": s.number()}).merge(s.object({"b": s.number()}))
        assert list(merged.fields) == ["a", "b"]


class TestPickOmit:
    def test_pick(self, user):
        schema = user.pick("name")
        assert list(schema.fields) == ["name"]
        assert schema.parse({"name": "a", "email": "junk"}) == {"name": "a"}

    def test_omit(self, user):
        schema = s.omit(user, ["address"])
        assert list(schema.fields) == ["name", "email"]

    def test_unknown_keys_rejected(self, user):
        with pytest.raises(SchemaDefinitionError):
            user.pick("nope")
        with pytest.raises(SchemaDefinitionError):
            user.omit("nope")

    def test_shares_field_nodes(self, user):
        assert user.pick("email").fields["email"] is user.fields["email"]


class TestPartialRequired:
    def test_partial_is_shallow(self, user):
        schema = user.partial()
        assert schema.parse({}) == {}
        result = schema.safe_parse({"address": {}})
        assert [i.path for i in result.error.issues] == [("address", "city"), ("address", "zip")]

    def test_partial_keys(self, user):
        schema = user.partial("email")
        assert isinstance(schema.fields["email"], OptionalSchema)
        assert not isinstance(schema.fields["name"], OptionalSchema)

    def test_partial_does_not_double_wrap(self):
        schema = s.object({"a": s.string().optional()}).partial()
        assert not isinstance(schema.fields["a"].inner, OptionalSchema)

    def test_partial_keeps_constraints(self, user):
        result = user.partial().safe_parse({"name": ""})
        assert result.error.issues[0].path == ("name",)

    def test_required_undoes_partial(self, user):
        schema = user.partial().required()
        assert isinstance(schema.safe_parse({}), Err)
        for key, field in schema.fields.items():
            assert field is user.fields[key]

    def test_required_keys(self, user):
        schema = s.required(user.partial(), ["name"])
        assert schema.safe_parse({}).error.issues[0].path == ("name",)


class TestDeepPartial:
    def test_nested_fields_optional(self, user):
        schema = s.deep_partial(user)
        assert schema.parse({"address": {}}) == {"address": {}}
        assert isinstance(schema.safe_parse({"address": {"zip": "1"}}), Err)

    def test_array_elements(self):
        schema = s.object({"items": s.array(s.object({"id": s.number()}))}).deep_partial()
        assert schema.parse({"items": [{}]}) == {"items": [{}]}
        assert isinstance(schema.safe_parse({"items": "x"}), Err)

    def test_nullable_inner(self):
        schema = s.deep_partial(s.object({"a": s.object({"b": s.number()}).nullable()}))
        assert schema.parse({"a": None}) == {"a": None}
        assert schema.parse({"a": {}}) == {"a": {}}

    def test_recursive_schema(self):
        category = s.object(
            {
                "name": s.string(),
                "children": s.lazy(lambda: category).array(),
            }
        )
        patch = s.deep_partial(category)
        value = {"children": [{"children": [{"name": "leaf"}]}]}
        assert patch.parse(value) == value
        result = patch.safe_parse({"children": [{"children": [{"name": 1}]}]})
        assert result.error.issues[0].path == ("children", 0, "children", 0, "name")

    def test_recursive_resolution_is_cached(self):
        calls = []

        def make():
            calls.append(1)
            return s.object({"id": s.number()})

        patch = s.deep_partial(s.object({"child": s.lazy(make)}))
        for _ in range(3):
            assert patch.parse({"child": {}}) == {"child": {}}
        lazy = patch.fields["child"].inner
        assert lazy.schema is lazy.schema
        assert len(calls) == 1

    def test_shared_nodes_map_once(self):
        point = s.object({"x": s.number()})
        line = s.object({"start": point, "end": point})
        patch = s.deep_partial(line)
        assert patch.fields["start"].inner is patch.fields["end"].inner

    def test_source_unchanged(self, user):
        s.deep_partial(user)
        assert isinstance(user.safe_parse({}), Err)

    def test_non_object_passthrough(self):
        schema = s.string()
        assert s.deep_partial(schema) is schema
