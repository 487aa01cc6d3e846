"""Relationship merger tests."""

import logging
import unittest

from conftest import make_graph

from storyforge.core.models.relationship import Relationship
from storyforge.domain.graph.merger import RelationshipMerger


def rel(**fields) -> Relationship:
    return Relationship.model_validate(fields)


class RelationshipMergerTest(unittest.TestCase):
    def setUp(self) -> None:
        self.graph = make_graph()
        self.merger = RelationshipMerger()

    def test_add_node_merges_into_copy(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(id="COMP-CART", type="component", operation="add_node", canonicalName="Cart"),
            rel(id="E-CART-UPDATED", type="event", operation="add_node", canonicalName="Cart Updated"),
        ])

        self.assertEqual(result.merged_count, 2)
        self.assertIn("COMP-CART", result.updated_graph.components)
        self.assertIn("E-CART-UPDATED", result.updated_graph.events)
        self.assertNotIn("COMP-CART", self.graph.components)

    def test_duplicate_node_is_skipped(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(id="COMP-HEADER", type="component", operation="add_node", canonicalName="Header"),
        ])

        self.assertEqual(result.merged_count, 0)
        self.assertEqual(len(result.skipped), 1)
        self.assertEqual(result.skipped[0].reason, "Duplicate node: COMP-HEADER")
        self.assertEqual(result.updated_graph.node_count, self.graph.node_count)

    def test_edge_with_missing_endpoint_goes_to_manual_review(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(operation="add_edge", name="contains", source="COMP-HEADER", target="COMP-GHOST"),
        ])

        self.assertEqual(result.merged_count, 0)
        self.assertEqual(len(result.manual_review), 1)
        self.assertIn("Entity references do not exist", result.manual_review[0].reason)
        self.assertEqual(result.updated_graph.composition_edges, [])
        self.assertEqual(result.updated_graph.dangling_edges(), [])

    def test_composition_and_coordination_edges(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(operation="add_edge", name="contains", source="COMP-HEADER", target="COMP-LOGIN-FORM"),
            rel(operation="add_edge", name="coordinates-with", source="COMP-LOGIN-FORM",
                target="COMP-HEADER", via="E-LOGIN-SUCCEEDED"),
            rel(operation="add_edge", name="communicates-with", source="COMP-HEADER",
                target="COMP-LOGIN-FORM"),
        ])

        graph = result.updated_graph
        self.assertEqual(result.merged_count, 3)
        self.assertEqual(graph.composition_edges[0].parent, "COMP-HEADER")
        self.assertEqual(graph.composition_edges[0].child, "COMP-LOGIN-FORM")
        self.assertEqual(
            [e.via for e in graph.coordination_edges], ["E-LOGIN-SUCCEEDED", "communicates-with"],
        )

    def test_duplicate_edge_is_skipped(self) -> None:
        edge = rel(operation="add_edge", name="composed-of", source="COMP-HEADER", target="COMP-LOGIN-FORM")
        first = self.merger.merge(self.graph, [edge])
        second = self.merger.merge(first.updated_graph, [edge])

        self.assertEqual(second.merged_count, 0)
        self.assertEqual(len(second.skipped), 1)
        self.assertEqual(len(second.updated_graph.composition_edges), 1)

    def test_node_added_earlier_in_batch_resolves_edge(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(id="COMP-CART", type="component", operation="add_node", canonicalName="Cart"),
            rel(operation="add_edge", name="contains", source="COMP-HEADER", target="COMP-CART"),
        ])

        self.assertEqual(result.merged_count, 2)
        self.assertEqual(result.manual_review, [])

    def test_edit_operations_always_need_review(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(id="COMP-HEADER", type="component", operation="edit_node",
                canonicalName="Top Bar", confidence=1.0),
            rel(operation="edit_edge", name="contains", source="COMP-HEADER",
                target="COMP-LOGIN-FORM", confidence=1.0),
        ])

        self.assertEqual(result.merged_count, 0)
        self.assertEqual(
            [m.reason for m in result.manual_review],
            ["Edit operations require manual review"] * 2,
        )
        self.assertEqual(result.updated_graph.components["COMP-HEADER"].canonical_name, "Header")

    def test_unknown_and_incomplete_relationships_need_review(self) -> None:
        result = self.merger.merge(self.graph, [
            rel(operation="delete_node", id="COMP-HEADER"),
            rel(id="X-1", type="widget", operation="add_node", canonicalName="Widget"),
            rel(type="component", operation="add_node"),
            rel(operation="add_edge", name="contains", source="COMP-HEADER"),
            rel(operation="add_edge", name="depends-on", source="COMP-HEADER", target="COMP-LOGIN-FORM"),
        ])

        reasons = [m.reason for m in result.manual_review]
        self.assertEqual(result.merged_count, 0)
        self.assertEqual(len(reasons), 5)
        self.assertEqual(reasons[0], "Unknown operation: delete_node")
        self.assertEqual(reasons[1], "Unknown node type: widget")
        self.assertIn("add_node missing required fields", reasons[2])
        self.assertIn("add_edge missing required fields", reasons[3])
        self.assertEqual(reasons[4], "Unknown edge type: depends-on")

    def test_every_relationship_lands_in_exactly_one_bucket(self) -> None:
        batch = [
            rel(id="COMP-CART", type="component", operation="add_node", canonicalName="Cart"),
            rel(id="COMP-HEADER", type="component", operation="add_node", canonicalName="Header"),
            rel(operation="edit_node", id="COMP-HEADER"),
            rel(operation="add_edge", name="contains", source="COMP-NOPE", target="COMP-HEADER"),
        ]
        result = self.merger.merge(self.graph, batch)

        self.assertEqual(result.total, len(batch))
        self.assertEqual(
            (result.merged_count, len(result.skipped), len(result.manual_review)), (1, 1, 2),
        )

    def test_logs_merge_summary(self) -> None:
        with self.assertLogs("storyforge.domain.graph", level=logging.INFO) as logs:
            self.merger.merge(self.graph, [
                rel(id="COMP-CART", type="component", operation="add_node", canonicalName="Cart"),
            ])

        self.assertTrue(any(
            "Merge summary: 1 merged, 0 skipped, 0 flagged for manual review" in line
            for line in logs.output
        ))


if __name__ == "__main__":
    unittest.main()
