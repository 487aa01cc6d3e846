"""Generator agent tests: digest stamping and the artifact contract."""

import unittest

from conftest import ScriptedLLM, artifact_payload, make_graph

from storyforge.agents.generator import GeneratorAgent
from storyforge.core.errors import StructuredOutputError
from storyforge.domain.patching.validator import PatchValidator


class GeneratorAgentTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.graph = make_graph()

    async def generate(self, reply, **kwargs):
        agent = GeneratorAgent(ScriptedLLM({"generation": reply}), **kwargs)
        return await agent.generate("As a customer I want to log in", self.graph, "STORY-001")

    async def test_well_formed_reply_is_stamped(self) -> None:
        artifact = await self.generate(artifact_payload())

        self.assertEqual(artifact.id, "STORY-001")
        self.assertEqual(artifact.graph_digest, self.graph.digest())
        self.assertEqual(artifact.story.as_a, "returning customer")

    async def test_empty_or_unrelated_reply_is_rejected(self) -> None:
        for reply in ({}, {"unrelated": "text"}):
            with self.assertRaises(StructuredOutputError) as ctx:
                await self.generate(reply)
            self.assertEqual(ctx.exception.stage, "generation")
            self.assertIn("artifact must have a title", str(ctx.exception))
            self.assertIn("story.asA must not be blank", str(ctx.exception))

    async def test_blank_story_line_is_rejected(self) -> None:
        reply = artifact_payload()
        reply["story"]["soThat"] = "   "

        with self.assertRaises(StructuredOutputError) as ctx:
            await self.generate(reply)

        self.assertIn("story.soThat must not be blank", str(ctx.exception))

    async def test_items_breaking_the_item_contract_are_rejected(self) -> None:
        reply = artifact_payload()
        reply["userVisibleBehavior"] = [
            {"id": "WRONG 1", "text": ""},
            {"id": "WRONG 1", "text": "x"},
        ]

        with self.assertRaises(StructuredOutputError) as ctx:
            await self.generate(reply)

        message = str(ctx.exception)
        self.assertIn("item.id must be alphanumeric, underscore, or hyphen", message)
        self.assertIn('item.id must start with "UVB-"', message)
        self.assertIn("userVisibleBehavior[1] must have text", message)
        self.assertIn('Duplicate id "WRONG 1"', message)

    async def test_missing_item_id_is_rejected(self) -> None:
        reply = artifact_payload()
        reply["edgeCases"] = [{"text": "Network drops mid sign-in"}]

        with self.assertRaises(StructuredOutputError) as ctx:
            await self.generate(reply)

        self.assertIn("edgeCases[1] must have an id", str(ctx.exception))

    async def test_length_bound_comes_from_validator(self) -> None:
        with self.assertRaises(StructuredOutputError) as ctx:
            await self.generate(artifact_payload(), validator=PatchValidator(max_text_length=20))

        self.assertIn("at most 20 characters", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
