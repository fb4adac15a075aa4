"""
Tests for primitive schemas and their constraints.
"""

import math
from datetime import date, datetime, timezone
from enum import Enum

import pytest

import schemata as s
from schemata import Err, IssueCode, Ok


def codes(result):
    return [issue.code for issue in result.error.issues]


class TestString:
    def test_accepts_str(self):
        assert isinstance(s.string().safe_parse("hello"), Ok)

    def test_rejects_non_str(self):
        result = s.string().safe_parse(42)
        assert isinstance(result, Err)
        issue = result.error.issues[0]
        assert issue.code == IssueCode.INVALID_TYPE
        assert issue.context == {"expected": "string", "received": "number"}
        assert issue.message == "Expected string, received number"

    def test_custom_type_message(self):
        result = s.string("Name must be text").safe_parse(None)
        assert result.error.issues[0].message == "Name must be text"

    def test_all_checks_run(self):
        schema = s.string().min(5).email().starts_with("x")
        result = schema.safe_parse("ab")
        assert codes(result) == [
            IssueCode.TOO_SMALL,
            IssueCode.INVALID_STRING,
            IssueCode.INVALID_STRING,
        ]

    def test_min_max_length(self):
        schema = s.string().min(2).max(4)
        assert isinstance(schema.safe_parse("abc"), Ok)
        small = schema.safe_parse("a").error.issues[0]
        assert small.code == IssueCode.TOO_SMALL
        assert small.message == "String must contain at least 2 character(s)"
        big = schema.safe_parse("abcde").error.issues[0]
        assert big.code == IssueCode.TOO_BIG
        assert big.context["maximum"] == 4

    def test_exact_length(self):
        schema = s.string().length(3)
        assert isinstance(schema.safe_parse("abc"), Ok)
        issue = schema.safe_parse("ab").error.issues[0]
        assert issue.context["exact"] is True
        assert issue.message == "String must contain exactly 3 character(s)"

    def test_nonempty(self):
        assert isinstance(s.string().nonempty().safe_parse(""), Err)

    def test_email(self):
        schema = s.string().email()
        assert isinstance(schema.safe_parse("ada@example.com"), Ok)
        result = schema.safe_parse("not-an-email")
        assert result.error.issues[0].message == "Invalid email"
        assert result.error.issues[0].context["validation"] == "email"

    def test_uuid(self):
        schema = s.string().uuid()
        assert isinstance(schema.safe_parse("123e4567-e89b-12d3-a456-426614174000"), Ok)
        assert isinstance(schema.safe_parse("bad"), Err)

    def test_url(self):
        schema = s.string().url()
        assert isinstance(schema.safe_parse("https://example.com/x"), Ok)
        assert isinstance(schema.safe_parse("example"), Err)

    def test_datetime(self):
        schema = s.string().datetime()
        assert isinstance(schema.safe_parse("2024-01-31T12:00:00Z"), Ok)
        assert isinstance(schema.safe_parse("2024-01-31"), Err)
        assert isinstance(schema.safe_parse("yesterday"), Err)

    def test_regex(self):
        schema = s.string().regex(r"^[a-z]+$", "Lowercase only")
        assert isinstance(schema.safe_parse("hello"), Ok)
        issue = schema.safe_parse("Hello").error.issues[0]
        assert issue.message == "Lowercase only"
        assert issue.context["pattern"] == "^[a-z]+$"

    def test_affixes(self):
        schema = s.string().starts_with("ab").ends_with("yz").includes("mm")
        assert isinstance(schema.safe_parse("abmmyz"), Ok)
        issue = s.string().starts_with("ab").safe_parse("xx").error.issues[0]
        assert issue.message == 'Invalid input: must start with "ab"'

    def test_trim_applies_before_later_checks(self):
        schema = s.string().trim().min(2)
        assert schema.parse("  ab  ") == "ab"
        assert isinstance(schema.safe_parse("  a  "), Err)

    def test_case_steps(self):
        assert s.string().to_upper().parse("abc") == "ABC"
        assert s.string().to_lower().parse("ABC") == "abc"

    def test_schema_is_immutable(self):
        base = s.string()
        constrained = base.min(3)
        assert base is not constrained
        assert base.checks == ()
        assert isinstance(base.safe_parse("a"), Ok)


class TestNumber:
    def test_accepts_int_and_float(self):
        assert s.number().parse(3) == 3
        assert s.number().parse(2.5) == 2.5

    def test_rejects_bool(self):
        result = s.number().safe_parse(True)
        assert result.error.issues[0].context["received"] == "boolean"

    def test_rejects_nan(self):
        issue = s.number().safe_parse(math.nan).error.issues[0]
        assert issue.code == IssueCode.INVALID_TYPE
        assert issue.context["received"] == "nan"

    def test_rejects_infinity(self):
        issue = s.number().safe_parse(math.inf).error.issues[0]
        assert issue.code == IssueCode.NOT_FINITE

    def test_non_finite_opt_in(self):
        assert s.number(allow_non_finite=True).parse(math.inf) == math.inf
        assert math.isnan(s.number().allow_non_finite().parse(math.nan))

    def test_bounds(self):
        schema = s.number().gt(0).lte(10)
        assert isinstance(schema.safe_parse(10), Ok)
        assert codes(schema.safe_parse(0)) == [IssueCode.TOO_SMALL]
        assert codes(schema.safe_parse(11)) == [IssueCode.TOO_BIG]
        assert schema.safe_parse(0).error.issues[0].message == "Number must be greater than 0"

    def test_int(self):
        schema = s.number().int()
        assert isinstance(schema.safe_parse(3.0), Ok)
        issue = schema.safe_parse(3.5).error.issues[0]
        assert issue.context == {"expected": "integer", "received": "float"}

    def test_sign_helpers(self):
        assert isinstance(s.number().positive().safe_parse(0), Err)
        assert isinstance(s.number().nonnegative().safe_parse(0), Ok)
        assert isinstance(s.number().negative().safe_parse(0), Err)
        assert isinstance(s.number().nonpositive().safe_parse(0), Ok)

    def test_multiple_of(self):
        assert isinstance(s.number().multiple_of(5).safe_parse(15), Ok)
        assert isinstance(s.number().multiple_of(0.1).safe_parse(0.3), Ok)
        issue = s.number().multiple_of(5).safe_parse(7).error.issues[0]
        assert issue.code == IssueCode.NOT_MULTIPLE_OF

    def test_multiple_of_requires_positive_step(self):
        with pytest.raises(ValueError):
            s.number().multiple_of(0)

    def test_independent_checks(self):
        result = s.number().int().gte(10).safe_parse(2.5)
        assert codes(result) == [IssueCode.INVALID_TYPE, IssueCode.TOO_SMALL]

    def test_big_ints(self):
        big = 10**400
        assert s.number().parse(big) == big
        assert s.number().int().finite().parse(big) == big
        assert s.number().multiple_of(5).parse(big) == big
        assert isinstance(s.number().multiple_of(3).safe_parse(big), Err)
        assert codes(s.number().lt(0).safe_parse(big)) == [IssueCode.TOO_BIG]


class TestCoerce:
    def test_number_from_string(self):
        assert s.coerce.number().parse("42") == 42
        assert s.coerce.number().parse(" 2.5 ") == 2.5

    def test_failed_coercion_is_type_issue(self):
        result = s.coerce.number().safe_parse("abc")
        assert result.error.issues[0].code == IssueCode.INVALID_TYPE

    def test_coerced_value_meets_constraints(self):
        assert isinstance(s.coerce.number().int().gte(10).safe_parse("5"), Err)

    def test_string(self):
        assert s.coerce.string().parse(12) == "12"

    def test_boolean(self):
        assert s.coerce.boolean().parse(1) is True
        assert s.coerce.boolean().parse("") is False

    def test_date(self):
        assert s.coerce.date().parse("2024-01-31") == datetime(2024, 1, 31)
        assert s.coerce.date().parse(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
        issue = s.coerce.date().safe_parse("not a date").error.issues[0]
        assert issue.code == IssueCode.INVALID_DATE


class TestBooleanAndDate:
    def test_boolean(self):
        assert s.boolean().parse(False) is False
        assert isinstance(s.boolean().safe_parse(0), Err)

    def test_date_bounds(self):
        schema = s.date().min(date(2024, 1, 1)).max(date(2024, 12, 31))
        assert isinstance(schema.safe_parse(date(2024, 6, 1)), Ok)
        assert isinstance(schema.safe_parse(datetime(2024, 6, 1, 12)), Ok)
        issue = schema.safe_parse(date(2023, 1, 1)).error.issues[0]
        assert issue.code == IssueCode.TOO_SMALL
        assert issue.context["type"] == "date"

    def test_date_rejects_string(self):
        assert isinstance(s.date().safe_parse("2024-01-01"), Err)

    def test_aware_value_against_naive_bound(self):
        schema = s.coerce.date().min(datetime(2020, 1, 1))
        assert schema.parse("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert isinstance(schema.safe_parse(1_700_000_000), Ok)
        assert codes(schema.safe_parse("2019-12-31T23:00:00Z")) == [IssueCode.TOO_SMALL]

    def test_naive_value_against_aware_bound(self):
        schema = s.date().max(datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert isinstance(schema.safe_parse(datetime(2023, 6, 1)), Ok)
        assert codes(schema.safe_parse(datetime(2024, 6, 1))) == [IssueCode.TOO_BIG]


class Color(Enum):
    RED = "red"
    GREEN = "green"


class TestLiteralAndEnum:
    def test_literal(self):
        assert s.literal("a").parse("a") == "a"
        issue = s.literal("a").safe_parse("b").error.issues[0]
        assert issue.code == IssueCode.INVALID_LITERAL
        assert issue.context["expected"] == "a"

    def test_literal_distinguishes_bool_and_int(self):
        assert isinstance(s.literal(1).safe_parse(True), Err)

    def test_literal_matches_int_and_float(self):
        assert s.literal(1).parse(1.0) == 1
        assert s.literal(2.0).parse(2) == 2
        assert isinstance(s.literal(1).safe_parse(1.5), Err)
        assert s.enum(1, 2).parse(2.0) == 2
        assert isinstance(s.enum(1, 2).safe_parse(True), Err)

    def test_enum(self):
        schema = s.enum("a", "b")
        assert schema.parse("b") == "b"
        issue = schema.safe_parse("c").error.issues[0]
        assert issue.code == IssueCode.INVALID_ENUM_VALUE
        assert issue.message == "Invalid enum value. Expected 'a' | 'b', received 'c'"

    def test_enum_extract_exclude(self):
        schema = s.enum(["a", "b", "c"])
        assert schema.extract("a").options == ("a",)
        assert schema.exclude("a").options == ("b", "c")

    def test_native_enum(self):
        schema = s.native_enum(Color)
        assert schema.parse("red") is Color.RED
        assert schema.parse(Color.GREEN) is Color.GREEN
        assert isinstance(schema.safe_parse("blue"), Err)


class TestSpecialTypes:
    def test_none(self):
        assert s.none().parse(None) is None
        assert isinstance(s.none().safe_parse(0), Err)

    def test_any_and_unknown(self):
        assert s.any().parse([1]) == [1]
        assert s.unknown().parse("x") == "x"

    def test_never(self):
        assert isinstance(s.never().safe_parse(None), Err)
