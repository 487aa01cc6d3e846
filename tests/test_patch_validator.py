"""Patch validation tests.

Each test breaks exactly one rule and checks the rejection reason.
"""

import unittest

from conftest import make_artifact

from storyforge.core.models.patch import parse_patch
from storyforge.domain.patching.validator import PatchValidator


def patch(op: str, path: str, item: dict | None = None, match: dict | None = None, advisor: str = "tester"):
    data = {"op": op, "path": path, "metadata": {"advisorId": advisor}}
    if item is not None:
        data["item"] = item
    if match is not None:
        data["match"] = match
    return parse_patch(data)


class PatchValidatorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.artifact = make_artifact()
        self.validator = PatchValidator()

    def assertRejected(self, result, fragment: str) -> None:
        self.assertFalse(result.valid)
        self.assertTrue(
            any(fragment in error for error in result.errors),
            f"{fragment!r} not in {result.errors}",
        )

    def test_valid_add(self) -> None:
        result = self.validator.validate(
            patch("add", "userVisibleBehavior", {"id": "UVB-2", "text": "Shows a spinner"}),
            self.artifact,
        )
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, [])

    def test_missing_advisor_id(self) -> None:
        result = self.validator.validate(
            patch("add", "userVisibleBehavior", {"id": "UVB-2", "text": "x"}, advisor=""),
            self.artifact,
        )
        self.assertRejected(result, "Patch must have path and metadata.advisorId")

    def test_unknown_path(self) -> None:
        result = self.validator.validate(
            patch("add", "story.title", {"id": "T-1", "text": "x"}), self.artifact,
        )
        self.assertRejected(result, "does not refer to a list section or story line")

    def test_duplicate_add_id(self) -> None:
        result = self.validator.validate(
            patch("add", "userVisibleBehavior", {"id": "UVB-1", "text": "Again"}), self.artifact,
        )
        self.assertRejected(result, 'Duplicate id "UVB-1"')

    def test_wrong_prefix(self) -> None:
        result = self.validator.validate(
            patch("add", "outcomeAcceptanceCriteria", {"id": "UVB-9", "text": "Wrong section"}),
            self.artifact,
        )
        self.assertRejected(result, 'item.id must start with "AC-OUT-"')

    def test_invalid_id_characters(self) -> None:
        result = self.validator.validate(
            patch("add", "edgeCases", {"id": "EDGE 2!", "text": "Bad id"}), self.artifact,
        )
        self.assertRejected(result, "item.id must be alphanumeric")

    def test_missing_item_id(self) -> None:
        result = self.validator.validate(
            patch("add", "edgeCases", {"text": "No id"}), self.artifact,
        )
        self.assertRejected(result, "must provide item.id")

    def test_missing_item_text(self) -> None:
        result = self.validator.validate(
            patch("add", "edgeCases", {"id": "EDGE-2", "text": "   "}), self.artifact,
        )
        self.assertRejected(result, "must provide item.text")

    def test_over_length_text(self) -> None:
        result = self.validator.validate(
            patch("add", "edgeCases", {"id": "EDGE-2", "text": "x" * 501}), self.artifact,
        )
        self.assertRejected(result, "item.text must be at most 500 characters")

    def test_story_line_over_length(self) -> None:
        validator = PatchValidator(max_text_length=10)
        result = validator.validate(
            patch("replace", "story.iWant", {"text": "a much longer line than ten"}), self.artifact,
        )
        self.assertRejected(result, "item.text must be at most 10 characters")

    def test_replace_without_match(self) -> None:
        result = self.validator.validate(
            patch("replace", "userVisibleBehavior", {"id": "UVB-1", "text": "New"}), self.artifact,
        )
        self.assertRejected(result, "replace/remove must specify match.id or match.textEquals")

    def test_replace_with_no_matching_element(self) -> None:
        result = self.validator.validate(
            patch("replace", "userVisibleBehavior", {"id": "UVB-1", "text": "New"}, {"id": "UVB-42"}),
            self.artifact,
        )
        self.assertRejected(result, "No matching item to replace in userVisibleBehavior")

    def test_remove_with_no_matching_element(self) -> None:
        result = self.validator.validate(
            patch("remove", "edgeCases", match={"textEquals": "nothing like this"}), self.artifact,
        )
        self.assertRejected(result, "No matching item to remove in edgeCases")

    def test_remove_on_story_line(self) -> None:
        result = self.validator.validate(patch("remove", "story.asA"), self.artifact)
        self.assertRejected(result, "remove operation not supported on story line paths")

    def test_add_on_story_line(self) -> None:
        result = self.validator.validate(
            patch("add", "story.soThat", {"text": "I save time"}), self.artifact,
        )
        self.assertRejected(result, "add operation not supported on story line path")

    def test_replace_story_line_needs_no_match(self) -> None:
        result = self.validator.validate(
            patch("replace", "story.soThat", {"text": "I save time"}), self.artifact,
        )
        self.assertTrue(result.valid)

    def test_replace_by_text_equals(self) -> None:
        result = self.validator.validate(
            patch(
                "replace",
                "edgeCases",
                {"id": "EDGE-1", "text": "Wrong password keeps the email filled in"},
                {"textEquals": "Wrong password shows an inline error"},
            ),
            self.artifact,
        )
        self.assertTrue(result.valid)

    def test_validation_does_not_touch_artifact(self) -> None:
        before = self.artifact.model_dump()
        self.validator.validate(
            patch("remove", "userVisibleBehavior", match={"id": "UVB-1"}), self.artifact,
        )
        self.assertEqual(self.artifact.model_dump(), before)


if __name__ == "__main__":
    unittest.main()
