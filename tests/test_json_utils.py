import unittest

from storyforge.utils.json_utils import extract_json


class ExtractJsonTest(unittest.TestCase):
    def test_plain_json(self) -> None:
        self.assertEqual(extract_json('{"a": 1}'), {"a": 1})

    def test_fenced_block(self) -> None:
        text = 'Here you go:\n```json\n{"patches": []}\n```\nThanks'
        self.assertEqual(extract_json(text), {"patches": []})

    def test_unlabelled_fence_after_bad_fence(self) -> None:
        text = "```\nnot json\n```\n```\n[1, 2]\n```"
        self.assertEqual(extract_json(text), [1, 2])

    def test_object_embedded_in_prose(self) -> None:
        text = 'The rubric is {"overallScore": 4} as requested.'
        self.assertEqual(extract_json(text), {"overallScore": 4})

    def test_array_embedded_in_prose(self) -> None:
        self.assertEqual(extract_json("IDs: [\"COMP-A\"] done"), ["COMP-A"])

    def test_nothing_parseable(self) -> None:
        for text in (None, "", "   ", "no json at all", "{broken: ]"):
            with self.subTest(text=text):
                self.assertIsNone(extract_json(text))


if __name__ == "__main__":
    unittest.main()
