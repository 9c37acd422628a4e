import unittest
from datetime import datetime, timezone

from taskboard.services.filter_predicates import (
    And,
    Between,
    Contains,
    Equals,
    FieldCondition,
    JsonHasKey,
    Not,
    Null,
    Or,
    Passthrough,
    Range,
    RelationPresence,
    RelationQuantifier,
    SetMembership,
    combine_and,
    compile_field_filter,
    compile_filters,
    compile_operator,
    describe_predicate,
    search_condition,
)


class CompileOperatorTests(unittest.TestCase):
    def test_eq_is_case_insensitive_and_not_is_exact(self):
        self.assertEqual(compile_operator("eq", "Alpha"), Equals("Alpha", case_insensitive=True))
        self.assertEqual(compile_operator("neq", "Alpha"), Not(Equals("Alpha", case_insensitive=True)))
        self.assertEqual(compile_operator("not", "Alpha"), Not(Equals("Alpha", case_insensitive=False)))

    def test_text_match_and_range_operators(self):
        self.assertEqual(compile_operator("startsWith", "ab"), Contains("ab", mode="startsWith"))
        self.assertEqual(compile_operator("endsWith", "yz"), Contains("yz", mode="endsWith"))
        self.assertEqual(compile_operator("contains", "mid"), Contains("mid"))
        for op in ("gt", "gte", "lt", "lte"):
            self.assertEqual(compile_operator(op, 5), Range(op, 5))

    def test_set_membership_wraps_scalars(self):
        self.assertEqual(compile_operator("in", ["a", "b"]), SetMembership(("a", "b")))
        self.assertEqual(compile_operator("notIn", "a"), SetMembership(("a",), negate=True))

    def test_between_keeps_missing_bounds_open(self):
        self.assertEqual(compile_operator("between", {"min": 1, "max": 3}), Between(1, 3))
        self.assertEqual(compile_operator("between", {"min": 1}), Between(1, None))

    def test_between_with_non_mapping_operand_is_forwarded(self):
        self.assertEqual(compile_operator("between", [1, 3]), Passthrough("between", [1, 3]))

    def test_is_null_only_true_means_null(self):
        self.assertEqual(compile_operator("isNull", True), Null(True))
        self.assertEqual(compile_operator("isNull", False), Null(False))
        self.assertEqual(compile_operator("isNull", "yes"), Null(False))

    def test_before_and_after_parse_iso_datetimes(self):
        fragment = compile_operator("before", "2026-03-01T10:00:00Z")
        self.assertEqual(fragment, Range("lt", datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)))
        fragment = compile_operator("after", "2026-03-01")
        self.assertEqual(fragment, Range("gt", datetime(2026, 3, 1, tzinfo=timezone.utc)))

    def test_unparseable_temporal_operand_is_kept(self):
        self.assertEqual(compile_operator("before", "soon"), Range("lt", "soon"))

    def test_relation_operators(self):
        self.assertEqual(compile_operator("hasKey", "area"), JsonHasKey("area"))
        self.assertEqual(compile_operator("is", None), RelationPresence(False))
        self.assertEqual(compile_operator("isSet", True), RelationPresence(True))
        self.assertEqual(compile_operator("isSet", False), RelationPresence(False))
        fragment = compile_operator("some", {"userId": "u1"})
        self.assertEqual(
            fragment,
            RelationQuantifier("some", And((FieldCondition("userId", (Equals("u1"),)),))),
        )

    def test_unknown_operator_is_forwarded_not_rejected(self):
        self.assertEqual(compile_operator("regexp", "^a"), Passthrough("regexp", "^a"))


class CompileFieldFilterTests(unittest.TestCase):
    def test_scalar_is_implicit_eq(self):
        self.assertEqual(compile_field_filter("status", "TODO"), FieldCondition("status", (Equals("TODO"),)))

    def test_none_means_is_null(self):
        self.assertEqual(compile_field_filter("dueDate", None), FieldCondition("dueDate", (Null(True),)))

    def test_list_value_is_forwarded_as_equals(self):
        condition = compile_field_filter("labels", ["a"])
        self.assertEqual(condition.fragments, (Passthrough("equals", ["a"]),))

    def test_mapping_keeps_every_operator_and_reads_path(self):
        condition = compile_field_filter("labels", {"path": ["meta", "area"], "eq": "api", "neq": "web"})
        self.assertEqual(condition.json_path, ("meta", "area"))
        self.assertEqual(condition.fragments, (Equals("api"), Not(Equals("web"))))

    def test_empty_filters_compile_to_nothing(self):
        self.assertIsNone(compile_filters(None))
        self.assertIsNone(compile_filters({}))


class SearchAndCombineTests(unittest.TestCase):
    def test_search_builds_or_of_contains(self):
        self.assertEqual(
            search_condition("bug", ("title", "description")),
            Or((FieldCondition("title", (Contains("bug"),)), FieldCondition("description", (Contains("bug"),)))),
        )

    def test_empty_search_or_no_fields_is_skipped(self):
        self.assertIsNone(search_condition("", ("title",)))
        self.assertIsNone(search_condition(None, ("title",)))
        self.assertIsNone(search_condition("bug", ()))

    def test_combine_and_drops_missing_parts(self):
        a = FieldCondition("a", (Equals(1),))
        b = FieldCondition("b", (Equals(2),))
        self.assertIsNone(combine_and(None, None))
        self.assertIs(combine_and(None, a), a)
        self.assertEqual(combine_and(a, None, b), And((a, b)))

    def test_describe_is_json_friendly(self):
        described = describe_predicate(compile_filters({"dueDate": {"before": "2026-01-02T00:00:00+00:00"}}))
        self.assertEqual(described["type"], "And")
        fragment = described["items"][0]["fragments"][0]
        self.assertEqual(fragment, {"type": "Range", "op": "lt", "value": "2026-01-02T00:00:00+00:00"})


if __name__ == "__main__":
    unittest.main()
