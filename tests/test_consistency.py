"""Global consistency pass tests: fix gating and manual-review flagging."""

import logging
import unittest

from conftest import ScriptedLLM, make_artifact, make_graph

from storyforge.agents.judge import JudgeAgent
from storyforge.core.models.reports import ConsistencyReport, StoryInterconnections
from storyforge.phases.p3_consistency.orchestrator import ConsistencyOrchestrator


def fix(fix_type="normalize-term-to-vocabulary", artifact_id="STORY-001", confidence=0.95, **patch):
    data = {
        "type": fix_type,
        "artifactId": artifact_id,
        "path": "uiMapping",
        "operation": "replace",
        "match": {"id": "UI-MAP-1"},
        "item": {"id": "UI-MAP-1", "text": "Log in form | COMP-LOGIN-FORM"},
        "confidence": confidence,
        "reasoning": "use the vocabulary term",
    }
    data.update(patch)
    return data


class ConsistencyOrchestratorTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.graph = make_graph()
        self.artifacts = {
            "STORY-001": make_artifact("STORY-001"),
            "STORY-002": make_artifact("STORY-002"),
        }

    async def run_with(self, reply: dict):
        llm = ScriptedLLM({"consistency": reply})
        orchestrator = ConsistencyOrchestrator(JudgeAgent(llm))
        result = await orchestrator.run(self.artifacts, {}, self.graph)
        return llm, result

    async def test_safe_confident_fix_is_applied(self) -> None:
        with self.assertLogs("storyforge.consistency", level=logging.INFO) as logs:
            _, result = await self.run_with({"issues": [], "fixes": [fix()]})

        self.assertEqual(len(result.applied), 1)
        self.assertEqual(result.flagged, [])
        self.assertEqual(
            result.artifacts["STORY-001"].ui_mapping[0].text, "Log in form | COMP-LOGIN-FORM",
        )
        self.assertEqual(
            self.artifacts["STORY-001"].ui_mapping[0].text, "sign-in form | COMP-LOGIN-FORM",
        )
        self.assertIs(result.artifacts["STORY-002"], self.artifacts["STORY-002"])
        self.assertTrue(any(
            "Auto-applied fix: normalize-term-to-vocabulary to STORY-001" in line
            for line in logs.output
        ))

    async def test_each_rejection_reason(self) -> None:
        reply = {
            "issues": [{
                "description": "Stories disagree on the sign-in term",
                "suggestedFixType": "normalize-term-to-vocabulary",
                "confidence": 0.9,
                "affectedStories": ["STORY-001", "STORY-002"],
            }],
            "fixes": [
                fix(confidence=0.8),
                fix(fix_type="rewrite-story", confidence=0.99),
                fix(artifact_id="STORY-999"),
                fix(fix_type="add-bidirectional-link", operation="add", path="userVisibleBehavior",
                    item={"id": "UVB-1", "text": "Duplicate id"}, match=None),
            ],
        }

        with self.assertLogs("storyforge.consistency", level=logging.WARNING) as logs:
            _, result = await self.run_with(reply)

        self.assertEqual(result.applied, [])
        self.assertEqual(
            [f.reason for f in result.flagged],
            ["low confidence", "unsafe fix type", "artifact not found", "patch application failed"],
        )
        self.assertEqual(result.report.issues[0].affected_artifacts, ["STORY-001", "STORY-002"])
        self.assertEqual(result.artifacts, self.artifacts)
        self.assertTrue(any(
            "Fix flagged for manual review: rewrite-story for STORY-001 (unsafe fix type)" in line
            for line in logs.output
        ))

    async def test_fix_with_wrong_id_prefix_is_flagged(self) -> None:
        bad = fix(operation="add", match=None, item={"id": "UVB-9", "text": "wrong prefix"})

        _, result = await self.run_with({"fixes": [bad]})

        self.assertEqual(result.flagged[0].reason, "patch application failed")
        self.assertEqual(len(result.artifacts["STORY-001"].ui_mapping), 1)

    async def test_corpus_includes_cross_references(self) -> None:
        llm = ScriptedLLM({"consistency": {"issues": [], "fixes": []}})
        interconnections = {
            "STORY-001": StoryInterconnections(story_id="STORY-001", contract_dependencies=["C-STATE-SESSION"]),
        }

        result = await ConsistencyOrchestrator(JudgeAgent(llm)).run(
            self.artifacts, interconnections, self.graph,
        )

        self.assertIsInstance(result.report, ConsistencyReport)
        _, messages = llm.requests[0]
        self.assertIn("===== STORY-001 =====", messages[1]["content"])
        self.assertIn("===== STORY-002 =====", messages[1]["content"])
        self.assertIn("C-STATE-SESSION", messages[1]["content"])
        self.assertIn("sign-in -> Log in", messages[1]["content"])
        self.assertEqual(llm.calls["consistency"], 1)

    async def test_custom_threshold_and_safe_list(self) -> None:
        llm = ScriptedLLM({"consistency": {"fixes": [fix(confidence=0.6)]}})
        orchestrator = ConsistencyOrchestrator(
            JudgeAgent(llm), auto_apply_threshold=0.5, safe_fix_types=["normalize-term-to-vocabulary"],
        )

        result = await orchestrator.run(self.artifacts, {}, self.graph)

        self.assertEqual(len(result.applied), 1)

    async def test_configured_types_outside_the_safe_set_are_never_applied(self) -> None:
        llm = ScriptedLLM({"consistency": {"fixes": [
            fix(fix_type="rewrite-story"),
            fix(fix_type="normalize-contract-id"),
        ]}})
        with self.assertLogs("storyforge.consistency", level=logging.WARNING) as logs:
            orchestrator = ConsistencyOrchestrator(
                JudgeAgent(llm), safe_fix_types=["rewrite-story", "normalize-contract-id"],
            )

        self.assertEqual(orchestrator.safe_fix_types, frozenset({"normalize-contract-id"}))
        self.assertTrue(any("rewrite-story" in line for line in logs.output))

        result = await orchestrator.run(self.artifacts, {}, self.graph)

        self.assertEqual([f.type for f in result.applied], ["normalize-contract-id"])
        self.assertEqual(
            [(f.fix.type, f.reason) for f in result.flagged], [("rewrite-story", "unsafe fix type")],
        )


if __name__ == "__main__":
    unittest.main()
