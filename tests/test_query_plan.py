import unittest

from taskboard.schemas.query import QueryRequest
from taskboard.services.filter_predicates import And, Contains, Equals, FieldCondition, Or
from taskboard.services.query_plan import IncludeNode, SortSpec, build_include_tree, build_query_plan, parse_sort


class ParseSortTests(unittest.TestCase):
    def test_direction_suffix(self):
        self.assertEqual(parse_sort("createdAt:desc"), SortSpec("createdAt", True))
        self.assertEqual(parse_sort("createdAt:DESC"), SortSpec("createdAt", True))
        self.assertEqual(parse_sort("title:asc"), SortSpec("title", False))
        self.assertEqual(parse_sort("title:sideways"), SortSpec("title", False))

    def test_no_colon_sorts_ascending_by_whole_string(self):
        self.assertEqual(parse_sort("title"), SortSpec("title", False))

    def test_blank_sort_is_none(self):
        self.assertIsNone(parse_sort(None))
        self.assertIsNone(parse_sort("  "))


class IncludeTreeTests(unittest.TestCase):
    def test_list_and_nested_select(self):
        tree = build_include_tree(
            {
                "user": ["id", "email"],
                "team": {"select": {"name": True, "owner": {"select": {"email": True}}}},
            }
        )
        self.assertEqual(tree["user"], IncludeNode(("id", "email")))
        self.assertEqual(tree["team"].fields, ("name",))
        self.assertEqual(tree["team"].children["owner"].fields, ("email",))

    def test_empty_relations(self):
        self.assertEqual(build_include_tree(None), {})


class BuildQueryPlanTests(unittest.TestCase):
    def test_pagination_offset(self):
        plan = build_query_plan(QueryRequest(page=3, limit=5))
        self.assertEqual((plan.offset, plan.limit), (10, 5))
        self.assertTrue(plan.is_paginated)

    def test_non_positive_limit_disables_pagination(self):
        for limit in (0, -1):
            plan = build_query_plan(QueryRequest(page=4, limit=limit))
            self.assertIsNone(plan.offset)
            self.assertIsNone(plan.limit)
            self.assertFalse(plan.is_paginated)

    def test_scope_filters_and_search_are_and_combined(self):
        plan = build_query_plan(
            QueryRequest(filters={"status": "TODO"}, search_key="bug"),
            ("title",),
            scope={"teamId": "t1"},
        )
        self.assertEqual(
            plan.where,
            And(
                (
                    And((FieldCondition("teamId", (Equals("t1"),)),)),
                    And((FieldCondition("status", (Equals("TODO"),)),)),
                    Or((FieldCondition("title", (Contains("bug"),)),)),
                )
            ),
        )

    def test_request_sort_wins_over_default(self):
        plan = build_query_plan(QueryRequest(sort="title:asc"), default_sort="createdAt:desc")
        self.assertEqual(plan.sort, SortSpec("title", False))
        plan = build_query_plan(QueryRequest(), default_sort="createdAt:desc")
        self.assertEqual(plan.sort, SortSpec("createdAt", True))

    def test_same_request_builds_same_plan(self):
        request = QueryRequest(page=2, limit=5, filters={"title": {"contains": "x"}}, sort="title")
        self.assertEqual(
            build_query_plan(request, ("title",), {"assignee": ["id"]}).describe(),
            build_query_plan(request, ("title",), {"assignee": ["id"]}).describe(),
        )


if __name__ == "__main__":
    unittest.main()
