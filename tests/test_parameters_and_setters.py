from __future__ import annotations

import unittest

from dynamic_page_list.core import setters as s
from dynamic_page_list.core.categories import (
    CategoryFilter,
    ComparisonKind,
    OperatorKind,
    count_members,
    split_category_option,
)
from dynamic_page_list.core.cleanup import LinkFlags
from dynamic_page_list.core.definitions import default_registry
from dynamic_page_list.core.parameters import (
    ParameterDefinition,
    ParameterRegistry,
    table_row_keys,
)
from dynamic_page_list.core.settings import Settings
from dynamic_page_list.core.titles import NS_FILE, NS_TEMPLATE, PageRef

from tests.pipeline_test_helpers import parameters_from


class RegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = default_registry()

    def test_lookup_is_case_insensitive_and_resolves_aliases(self) -> None:
        self.assertTrue(self.registry.exists("CATEGORY"))
        self.assertEqual(self.registry.canonical_name("IncludePage"), "include")
        self.assertEqual(self.registry.canonical_name("format"), "listseparators")
        self.assertIsNone(self.registry.canonical_name("bogus"))

    def test_classify_unknown_raises(self) -> None:
        with self.assertRaises(KeyError):
            self.registry.classify("bogus")

    def test_duplicate_definitions_are_rejected(self) -> None:
        setter = s.text("a")
        with self.assertRaises(ValueError):
            ParameterRegistry([ParameterDefinition("a", setter), ParameterDefinition("a", setter)])
        with self.assertRaises(ValueError):
            ParameterRegistry(
                [ParameterDefinition("a", setter), ParameterDefinition("b", setter, aliases=("A",))]
            )

    def test_richness_and_repetition(self) -> None:
        self.assertTrue(self.registry.test_richness("category", 0, already_seen=True))
        self.assertFalse(self.registry.test_richness("mode", 4, already_seen=True))
        self.assertFalse(self.registry.test_richness("titlematch", 1))
        self.assertTrue(self.registry.test_richness("titlematch", 2))

    def test_names_for_richness_are_sorted_and_filtered(self) -> None:
        names = self.registry.names_for_richness(0)

        self.assertEqual(names, sorted(names))
        self.assertIn("category", names)
        self.assertNotIn("titlematch", names)
        self.assertNotIn("includepage", names)

    def test_sort_by_priority_keeps_encounter_order_for_ties(self) -> None:
        entries = [
            ("mode", ("none",)),
            ("include", ("#A",)),
            ("ordermethod", ("size",)),
            ("category", ("Foo",)),
            ("distinct", ("false",)),
        ]
        ordered = [name for name, _ in self.registry.sort_by_priority(entries)]
        self.assertEqual(ordered, ["distinct", "ordermethod", "include", "mode", "category"])

    def test_new_parameter_set_has_defaults(self) -> None:
        parameters = self.registry.new_parameter_set(Settings())

        self.assertEqual(parameters.get("order"), "ascending")
        self.assertEqual(parameters.get("redirects"), "exclude")
        self.assertEqual(parameters.get("ordermethod"), ("title",))
        self.assertEqual(parameters.get("reset"), LinkFlags())
        self.assertIsNone(parameters.get("count"))
        self.assertNotIn("count", parameters)

    def test_apply_sets_selection_and_conflict_flags(self) -> None:
        parameters = parameters_from(["namespace=Help"])
        self.assertTrue(parameters.selection_criteria_found)
        self.assertFalse(parameters.open_references_conflict)
        self.assertEqual(parameters.get("namespace"), (12,))

        parameters = parameters_from(["category=Foo"])
        self.assertFalse(parameters.selection_criteria_found)
        self.assertTrue(parameters.open_references_conflict)

    def test_apply_reports_rejected_value(self) -> None:
        parameters = self.registry.new_parameter_set(Settings())

        self.assertFalse(self.registry.apply("mode", "fancy", parameters))
        self.assertEqual(parameters.get("mode"), "unordered")


class SetterTests(unittest.TestCase):
    def test_boolean_values(self) -> None:
        for raw, expected in (("true", True), ("YES", True), ("0", False), ("off", False)):
            with self.subTest(raw=raw):
                self.assertEqual(parameters_from([f"distinct={raw}"]).get("distinct"), expected)
        with self.assertRaises(AssertionError):
            parameters_from(["distinct=maybe"])

    def test_integer_bounds(self) -> None:
        self.assertEqual(parameters_from(["debug=5"]).get("debug"), 5)
        for raw in ("6", "-1", "x"):
            with self.subTest(raw=raw):
                with self.assertRaises(AssertionError):
                    parameters_from([f"debug={raw}"])

    def test_result_count_respects_maximum(self) -> None:
        settings = Settings(max_result_count=10)
        self.assertEqual(parameters_from(["count=10"], settings).get("count"), 10)
        with self.assertRaises(AssertionError):
            parameters_from(["count=11"], settings)
        with self.assertRaises(AssertionError):
            parameters_from(["count=0"], settings)

        unlimited = Settings(max_result_count=10, allow_unlimited_results=True)
        self.assertEqual(parameters_from(["count=11"], unlimited).get("count"), 11)

    def test_choice_is_case_insensitive(self) -> None:
        self.assertEqual(parameters_from(["headingmode=h2"]).get("headingmode"), "H2")

    def test_category_or_and_and_filters(self) -> None:
        parameters = parameters_from(["category=Foo bar|Baz", "category=A&b"])

        self.assertEqual(
            parameters.get("category"),
            (
                CategoryFilter(ComparisonKind.EQUALS, OperatorKind.OR, ("Foo_bar", "Baz")),
                CategoryFilter(ComparisonKind.EQUALS, OperatorKind.AND, ("A", "B")),
            ),
        )
        self.assertEqual(count_members(parameters.get("category")), 4)

    def test_identical_category_filter_is_added_once(self) -> None:
        parameters = parameters_from(["category=Foo", "category=Foo"])
        self.assertEqual(len(parameters.get("category")), 1)

    def test_category_match_keeps_pattern(self) -> None:
        parameters = parameters_from(["categorymatch=%Foo bar%"])
        (item,) = parameters.get("category")

        self.assertEqual(item.comparison, ComparisonKind.LIKE)
        self.assertEqual(item.names, ("%Foo_bar%",))

    def test_uncategorized_pseudo_category(self) -> None:
        parameters = parameters_from(["category=_none_"])

        self.assertTrue(parameters.include_uncategorized)
        self.assertEqual(parameters.get("category")[0].names, ("",))
        with self.assertRaises(AssertionError):
            parameters_from(["notcategory=_none_"])

    def test_heading_category_markers(self) -> None:
        parameters = parameters_from(["category=+Foo|Bar", "category=-Baz"])

        self.assertEqual(parameters.get("catheadings"), ("Foo", "Bar"))
        self.assertEqual(parameters.get("catnotheadings"), ("Baz",))

    def test_split_category_option_decodes_entities(self) -> None:
        self.assertEqual(split_category_option("A&amp;B"), (OperatorKind.AND, ["A", "B"]))
        self.assertEqual(split_category_option("A|B&C"), (OperatorKind.OR, ["A", "B&C"]))

    def test_namespace_list(self) -> None:
        parameters = parameters_from(["namespace=|Help|14", "namespace=help"])
        self.assertEqual(parameters.get("namespace"), (0, 12, 14))
        with self.assertRaises(AssertionError):
            parameters_from(["namespace=Nowhere"])

    def test_page_groups_use_default_namespace(self) -> None:
        parameters = parameters_from(["uses=Infobox|Help:Guide", "imageused=Logo.png"])

        self.assertEqual(
            parameters.get("uses"),
            ((PageRef(NS_TEMPLATE, "Infobox"), PageRef(12, "Guide")),),
        )
        self.assertEqual(parameters.get("imageused"), ((PageRef(NS_FILE, "Logo.png"),),))

    def test_title_and_patterns(self) -> None:
        parameters = parameters_from(
            ["title=Help:main page", "titlematch=A %|%z", "titleregexp=^(a|b)"]
        )

        self.assertEqual(parameters.get("title"), PageRef(12, "Main_page"))
        self.assertEqual(parameters.get("titlematch"), ("A_%", "%z"))
        self.assertEqual(parameters.get("titleregexp"), ("^(a|b)",))

    def test_user_names_use_spaces(self) -> None:
        self.assertEqual(parameters_from(["createdby=Jane_Doe"]).get("createdby"), "Jane Doe")

    def test_timestamp_is_padded(self) -> None:
        parameters = parameters_from(["allrevisionsbefore=2020-01-02"])
        self.assertEqual(parameters.get("allrevisionsbefore"), "20200102000000")
        with self.assertRaises(AssertionError):
            parameters_from(["allrevisionsbefore=202001020304050"])

    def test_order_methods(self) -> None:
        self.assertEqual(
            parameters_from(["ordermethod=Title, size,title"]).get("ordermethod"),
            ("title", "size"),
        )
        for raw in ("title,none", "bogus"):
            with self.subTest(raw=raw):
                with self.assertRaises(AssertionError):
                    parameters_from([f"ordermethod={raw}"])

    def test_section_labels_enable_page_inclusion(self) -> None:
        parameters = parameters_from(["include=#Intro, {Tpl}:a:b"])

        self.assertEqual(parameters.get("seclabels"), ("#Intro", "{Tpl}:a:b"))
        self.assertTrue(parameters.get("incpage"))

    def test_link_flags(self) -> None:
        self.assertEqual(LinkFlags.parse("links, images"), LinkFlags(links=True, images=True))
        self.assertEqual(LinkFlags.parse("all"), LinkFlags(True, True, True, True))
        self.assertEqual(LinkFlags.parse("all,none"), LinkFlags())
        self.assertIsNone(LinkFlags.parse("links,bogus"))


class TableRowKeyTests(unittest.TestCase):
    def test_plain_and_column_labels(self) -> None:
        keyed = table_row_keys(("a", "b", "c", "d"), ("#Intro", "{Tpl}:x:y", "#End"))
        self.assertEqual(keyed, {"0": "a", "1.0": "b", "1.1": "c", "2": "d"})

    def test_missing_entries_are_skipped(self) -> None:
        self.assertEqual(table_row_keys(("a",), ("#Intro", "#End")), {"0": "a"})


if __name__ == "__main__":
    unittest.main()
