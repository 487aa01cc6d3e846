"""Markdown rendering tests."""

import unittest

from conftest import make_artifact

from storyforge.core.models.artifact import Item
from storyforge.core.models.reports import Ownership, RelatedStory, StoryInterconnections
from storyforge.core.rendering import StoryRenderer


class StoryRendererTest(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = StoryRenderer()
        self.artifact = make_artifact()

    def test_sections_in_fixed_order(self) -> None:
        text = self.renderer.to_markdown(self.artifact)

        headings = [line for line in text.splitlines() if line.startswith("#")]
        self.assertEqual(headings, [
            "# Log in",
            "## User-Visible Behavior",
            "## Acceptance Criteria (Outcome)",
            "## Acceptance Criteria (System)",
            "## Implementation Notes",
            "### State ownership",
            "## UI Mapping",
            "## Edge Cases",
        ])
        self.assertIn("As a returning customer\nI want to log in with my email", text)
        self.assertIn("- [UVB-1] The sign-in form shows email and password fields", text)
        self.assertIn("- [UI-MAP-1] **sign-in form**: COMP-LOGIN-FORM", text)
        self.assertFalse(text.endswith("\n"))
        self.assertNotIn("\n\n\n", text)

    def test_rendering_is_deterministic(self) -> None:
        self.assertEqual(
            self.renderer.to_markdown(self.artifact),
            self.renderer.to_markdown(self.artifact.model_copy(deep=True)),
        )

    def test_whitespace_and_heading_markers_are_normalized(self) -> None:
        artifact = self.artifact.model_copy(update={
            "title": "## Log   in",
            "user_visible_behavior": [Item(id="UVB-1", text="Shows\n  an   error")],
        })

        text = self.renderer.to_markdown(artifact)

        self.assertTrue(text.startswith("# Log   in\n"))
        self.assertIn("- [UVB-1] Shows an error", text)

    def test_interconnections_appended(self) -> None:
        data = StoryInterconnections(
            story_id="STORY-001",
            contract_dependencies=["C-STATE-SESSION"],
            ownership=Ownership(owns_state=["C-STATE-SESSION"], emits_events=["E-LOGIN"]),
            related_stories=[
                RelatedStory(id="STORY-003", relationship="related"),
                RelatedStory(id="STORY-002", relationship="prerequisite", description="needs  orders"),
            ],
        )

        text = self.renderer.to_markdown(self.artifact, data)

        self.assertIn("## Contract Dependencies\n\n- C-STATE-SESSION", text)
        self.assertIn("**Owns State**: C-STATE-SESSION", text)
        self.assertIn("**Emits Events**: E-LOGIN", text)
        self.assertNotIn("Listens To", text)
        self.assertLess(text.index("**Prerequisites**"), text.index("**Related**"))
        self.assertIn("- STORY-002: needs orders", text)


if __name__ == "__main__":
    unittest.main()
