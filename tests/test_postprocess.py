from __future__ import annotations

import random
import unittest

from dynamic_page_list.core.postprocess import (
    card_suit_key,
    card_suit_sort,
    exclude_self,
    exclude_subpages,
    process,
    random_sample,
    sample_indices,
    should_reverse,
)
from dynamic_page_list.core.rows import ResultRow
from dynamic_page_list.core.settings import DEFAULT_NAMESPACES
from dynamic_page_list.core.titles import CurrentDocument, PageRef

from tests.pipeline_test_helpers import parameters_from, rows


class SamplingTests(unittest.TestCase):
    def test_indices_are_distinct_sorted_and_bounded(self) -> None:
        picks = sample_indices(10, 4, random.Random(7))

        self.assertEqual(len(picks), 4)
        self.assertEqual(picks, sorted(set(picks)))
        self.assertTrue(all(0 <= index < 10 for index in picks))

    def test_count_larger_than_total_takes_everything(self) -> None:
        self.assertEqual(sample_indices(3, 10, random.Random(1)), [0, 1, 2])

    def test_sample_keeps_relative_order(self) -> None:
        source = rows("A", "B", "C", "D", "E", "F")
        sample = random_sample(source, 3, random.Random(3))

        self.assertEqual(len(sample), 3)
        positions = [source.index(row) for row in sample]
        self.assertEqual(positions, sorted(positions))

    def test_same_seed_same_sample(self) -> None:
        source = rows(*"ABCDEFGHIJ")
        self.assertEqual(
            random_sample(source, 4, random.Random(42)),
            random_sample(source, 4, random.Random(42)),
        )

    def test_zero_count_returns_everything(self) -> None:
        source = rows("A", "B")
        self.assertEqual(random_sample(source, 0), list(source))


class ExclusionTests(unittest.TestCase):
    def test_exclude_subpages(self) -> None:
        result = exclude_subpages(rows("Main", "Main/Sub", "Other"))
        self.assertEqual([row.title for row in result], ["Main", "Other"])

    def test_exclude_self_matches_namespace_and_title(self) -> None:
        current = CurrentDocument(PageRef(12, "Guide"))
        source = (ResultRow(0, "Guide"), ResultRow(12, "Guide"), ResultRow(12, "Other"))

        result = exclude_self(source, current)
        self.assertEqual(result, [ResultRow(0, "Guide"), ResultRow(12, "Other")])


class ReverseTests(unittest.TestCase):
    def test_only_upper_bound_with_descending_order_reverses(self) -> None:
        cases = (
            (["titlelt=M", "order=descending"], True),
            (["titlelt=M"], False),
            (["titlelt=M", "titlegt=C", "order=descending"], False),
            (["order=descending"], False),
        )
        for lines, expected in cases:
            with self.subTest(lines=lines):
                self.assertEqual(should_reverse(parameters_from(lines)), expected)


class CardSuitTests(unittest.TestCase):
    def test_key(self) -> None:
        self.assertEqual(card_suit_key("1♣ - 1NT - Pass"), "1115 0 ")
        self.assertEqual(card_suit_key("Help:2♥ - X"), "238 ")

    def test_sort_orders_bidding_sequences(self) -> None:
        source = rows("2♥", "1NT", "Pass", "1♠")
        result = card_suit_sort(source, DEFAULT_NAMESPACES)
        self.assertEqual([row.title for row in result], ["Pass", "1♠", "1NT", "2♥"])

    def test_letter_coded_rows_sort_after_bids(self) -> None:
        self.assertEqual(card_suit_key("2♣ - Pass"), "210 ")
        self.assertEqual(card_suit_key("AKQ - X"), "AKQ8 ")

        source = rows("AKQ - X", "7♠ - 1NT", "2♣ - Pass")
        result = card_suit_sort(source, DEFAULT_NAMESPACES)
        self.assertEqual(
            [row.title for row in result], ["2♣ - Pass", "7♠ - 1NT", "AKQ - X"]
        )

    def test_sort_ignores_namespace_prefix(self) -> None:
        source = (ResultRow(12, "2♣"), ResultRow(0, "1♦"))
        result = card_suit_sort(source, DEFAULT_NAMESPACES)
        self.assertEqual([row.title for row in result], ["1♦", "2♣"])


class ProcessTests(unittest.TestCase):
    def test_defaults_drop_only_the_current_page(self) -> None:
        parameters = parameters_from(["category=Foo"])
        current = CurrentDocument(PageRef(0, "Sandbox"))

        result = process(rows("A", "Sandbox", "A/Sub"), parameters, current)
        self.assertEqual([row.title for row in result], ["A", "A/Sub"])

    def test_all_steps(self) -> None:
        parameters = parameters_from(
            [
                "category=Foo",
                "includesubpages=false",
                "skipthispage=false",
                "titlelt=Z",
                "order=descending",
            ]
        )
        current = CurrentDocument(PageRef(0, "B"))

        result = process(rows("A", "B", "B/Sub", "C"), parameters, current)
        self.assertEqual([row.title for row in result], ["C", "B", "A"])

    def test_card_suit_ordering_runs_last(self) -> None:
        parameters = parameters_from(
            ["category=Foo", "ordersuitsymbols=true", "titlelt=Z", "order=descending"]
        )
        current = CurrentDocument(PageRef(0, "Sandbox"))

        result = process(rows("Pass", "1NT", "1♣"), parameters, current)
        self.assertEqual([row.title for row in result], ["Pass", "1♣", "1NT"])

    def test_random_count_limits_rows(self) -> None:
        parameters = parameters_from(["category=Foo", "randomcount=2"])
        current = CurrentDocument(PageRef(0, "Sandbox"))

        result = process(rows("A", "B", "C", "D"), parameters, current, random.Random(5))
        self.assertEqual(len(result), 2)


if __name__ == "__main__":
    unittest.main()
