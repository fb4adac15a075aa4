"""
Tests for refinements, transforms and preprocess steps.
"""

import pytest

import schemata as s
from schemata import Err, IssueCode, Ok


class TestRefine:
    def test_passes(self):
        assert s.string().refine(str.isalpha, "Letters only").parse("abc") == "abc"

    def test_fails_with_custom_issue(self):
        issue = s.string().refine(str.isalpha, "Letters only").safe_parse("a1").error.issues[0]
        assert issue.code == IssueCode.CUSTOM
        assert issue.message == "Letters only"
        assert issue.path == ()

    def test_default_message(self):
        issue = s.number().refine(lambda n: n > 0).safe_parse(-1).error.issues[0]
        assert issue.message == "Invalid input"

    def test_params_in_context(self):
        schema = s.number().refine(lambda n: n % 2 == 0, "Even", kind="parity")
        issue = schema.safe_parse(3).error.issues[0]
        assert issue.context["params"] == {"kind": "parity"}

    def test_path(self):
        schema = s.object({"password": s.string(), "confirm": s.string()}).refine(
            lambda d: d["password"] == d["confirm"], "Passwords differ", path=("confirm",)
        )
        issue = schema.safe_parse({"password": "a", "confirm": "b"}).error.issues[0]
        assert issue.path == ("confirm",)

    def test_skipped_when_structure_fails(self):
        calls = []
        schema = s.object({"a": s.number()}).refine(lambda d: calls.append(d) or True)
        result = schema.safe_parse({"a": "x"})
        assert [i.code for i in result.error.issues] == [IssueCode.INVALID_TYPE]
        assert calls == []

    def test_failed_refine_stops_chain(self):
        calls = []
        schema = (
            s.string()
            .refine(lambda v: False, "first")
            .refine(lambda v: calls.append(v) or False, "second")
        )
        result = schema.safe_parse("x")
        assert [i.message for i in result.error.issues] == ["first"]
        assert calls == []

    def test_nested_refinement_path(self):
        schema = s.object({"age": s.number().refine(lambda n: n >= 18, "Adults only")})
        issue = schema.safe_parse({"age": 3}).error.issues[0]
        assert issue.path == ("age",)

    def test_exception_propagates(self):
        def boom(value):
            raise KeyError("boom")

        with pytest.raises(KeyError):
            s.string().refine(boom).safe_parse("x")


class TestSuperRefine:
    def test_multiple_issues(self):
        def check(value, issues):
            if len(value) < 3:
                issues.add_issue("Too short")
            if not value.isalpha():
                issues.add_issue("Letters only", code=IssueCode.INVALID_STRING, validation="alpha")

        result = s.string().super_refine(check).safe_parse("1")
        assert [i.message for i in result.error.issues] == ["Too short", "Letters only"]
        assert result.error.issues[1].code == IssueCode.INVALID_STRING

    def test_no_issues(self):
        assert s.string().super_refine(lambda v, issues: None).parse("x") == "x"

    def test_return_value_ignored(self):
        assert s.string().super_refine(lambda v, issues: "other").parse("x") == "x"

    def test_relative_path(self):
        def check(value, issues):
            issues.add_issue("Bad", path=("b",))

        schema = s.object({"inner": s.object({"b": s.number()}).super_refine(check)})
        issue = schema.safe_parse({"inner": {"b": 1}}).error.issues[0]
        assert issue.path == ("inner", "b")

    def test_collector_path(self):
        seen = []
        field = s.string().super_refine(lambda v, issues: seen.append(issues.path))
        s.object({"x": field}).parse({"x": "a"})
        assert seen == [("x",)]


class TestTransform:
    def test_transform_chain(self):
        schema = s.string().transform(str.strip).refine(bool, "Empty").transform(str.upper)
        assert schema.parse(" a ") == "A"
        assert schema.safe_parse("   ").error.issues[0].message == "Empty"

    def test_changes_type(self):
        schema = s.string().transform(len).pipe(s.number().max(3))
        assert schema.parse("abc") == 3
        assert isinstance(schema.safe_parse("abcd"), Err)

    def test_object_output(self):
        schema = s.object({"first": s.string(), "last": s.string()}).transform(
            lambda d: f"{d['first']} {d['last']}"
        )
        assert schema.parse({"first": "Ada", "last": "Lovelace"}) == "Ada Lovelace"

    def test_exception_propagates(self):
        with pytest.raises(ZeroDivisionError):
            s.number().transform(lambda n: 1 / n).parse(0)


class TestPreprocess:
    def test_runs_before_validation(self):
        schema = s.preprocess(
            lambda v: v.split(",") if isinstance(v, str) else v, s.array(s.string())
        )
        assert schema.parse("a,b") == ["a", "b"]
        assert schema.parse(["c"]) == ["c"]

    def test_invalid_after_preprocess(self):
        schema = s.preprocess(str.strip, s.string().min(2))
        assert isinstance(schema.safe_parse(" a "), Err)

    def test_exception_propagates(self):
        schema = s.preprocess(int, s.number())
        with pytest.raises(ValueError):
            schema.parse("abc")


class TestWrappers:
    def test_default_only_for_missing(self):
        schema = s.object({"n": s.number().default(1)})
        assert schema.parse({}) == {"n": 1}
        assert isinstance(schema.safe_parse({"n": None}), Err)

    def test_default_requires_value_or_factory(self):
        with pytest.raises(TypeError):
            s.number().default()
        with pytest.raises(TypeError):
            s.number().default(1, factory=lambda: 2)

    def test_catch(self):
        schema = s.number().catch(0)
        assert schema.parse("x") == 0
        assert schema.parse(5) == 5

    def test_nullish(self):
        schema = s.object({"a": s.string().nullish()})
        assert schema.parse({}) == {}
        assert schema.parse({"a": None}) == {"a": None}

    def test_pipe(self):
        schema = s.string().transform(int).pipe(s.number().gt(0))
        assert schema.parse("5") == 5
        assert isinstance(schema.safe_parse("-5"), Err)

    def test_pipe_stops_on_source_failure(self):
        result = s.string().pipe(s.number()).safe_parse(1)
        assert result.error.issues[0].context["expected"] == "string"

    def test_optional_missing_value(self):
        assert isinstance(s.string().optional().safe_parse(s.MISSING), Ok)
        assert isinstance(s.string().safe_parse(s.MISSING), Err)
