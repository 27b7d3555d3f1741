import unittest

from utils.placeholders import substitute_params


class TestSubstituteParams(unittest.TestCase):
    def test_replaces_both_placeholders(self):
        out = substitute_params("{{char}} greets {{user}}.", "Aria", "Danny")
        self.assertEqual(out, "Aria greets Danny.")

    def test_case_insensitive_and_global(self):
        out = substitute_params("{{CHAR}} {{Char}} {{user}} {{USER}}", "Aria", "Danny")
        self.assertEqual(out, "Aria Aria Danny Danny")

    def test_missing_names_use_fallbacks(self):
        out = substitute_params("{{char}} / {{user}}", None, "")
        self.assertEqual(out, "Character / User")

    def test_name_with_backslash_is_inserted_literally(self):
        out = substitute_params("{{char}}", r"A\1B", "Danny")
        self.assertEqual(out, r"A\1B")

    def test_text_without_placeholders_is_unchanged(self):
        self.assertEqual(substitute_params("plain text", "Aria", "Danny"), "plain text")

    def test_empty_text(self):
        self.assertEqual(substitute_params("", "Aria", "Danny"), "")


if __name__ == "__main__":
    unittest.main()
