from __future__ import annotations

import unittest

from recipe_import.errors import HeuristicExtractionEmpty
from recipe_import.heuristic import attempt_from_text, extract_from_text


ENGLISH = """Classic Pancakes
Prep time: 10 minutes
Cook time: 1 hour 5 minutes
Makes 4 servings
Ingredients
• 1 cup flour
- 1 egg
* 1 cup milk
Instructions
Mix everything together.
Cook on a hot griddle.
"""

GREEK = """Μουσακάς
Χρόνος προετοιμασίας: 30 λεπτά
Χρόνος ψησίματος: 1 ώρα
Για 6 μερίδες
Υλικά:
- 3 μελιτζάνες
- 500 γρ. κιμάς
Εκτέλεση
Κόβουμε τις μελιτζάνες.
Ψήνουμε στο φούρνο.
"""


class HeaderSplitTests(unittest.TestCase):
    def test_english_sections_and_metadata(self) -> None:
        attempt = attempt_from_text(ENGLISH)
        recipe = attempt.recipe
        self.assertEqual(attempt.strategy, "heuristic")
        self.assertEqual(attempt.confidence, 1.0)
        self.assertEqual(recipe.title, "Classic Pancakes")
        self.assertEqual(recipe.prep_time, 10)
        self.assertEqual(recipe.cook_time, 65)
        self.assertEqual(recipe.servings, 4)
        self.assertEqual(recipe.ingredients, ["1 cup flour", "1 egg", "1 cup milk"])
        self.assertEqual(recipe.instructions, ["Mix everything together.", "Cook on a hot griddle."])

    def test_greek_sections_and_metadata(self) -> None:
        recipe = extract_from_text(GREEK)
        self.assertEqual(recipe.title, "Μουσακάς")
        self.assertEqual(recipe.prep_time, 30)
        self.assertEqual(recipe.cook_time, 60)
        self.assertEqual(recipe.servings, 6)
        self.assertEqual(recipe.ingredients, ["3 μελιτζάνες", "500 γρ. κιμάς"])
        self.assertEqual(recipe.instructions, ["Κόβουμε τις μελιτζάνες.", "Ψήνουμε στο φούρνο."])

    def test_instructions_before_ingredients(self) -> None:
        text = "Quick Salad\nMethod\nChop the vegetables.\nToss with dressing.\nIngredients\n2 tomatoes\n1 cucumber"
        recipe = extract_from_text(text)
        self.assertEqual(recipe.title, "Quick Salad")
        self.assertEqual(recipe.ingredients, ["2 tomatoes", "1 cucumber"])
        self.assertEqual(recipe.instructions, ["Chop the vegetables.", "Toss with dressing."])

    def test_time_label_is_not_a_header(self) -> None:
        text = "Pie\nPreparation time: 10 min\nIngredients\n1 apple\nPreparation\nBake it."
        recipe = extract_from_text(text)
        self.assertEqual(recipe.prep_time, 10)
        self.assertEqual(recipe.ingredients, ["1 apple"])
        self.assertEqual(recipe.instructions, ["Bake it."])

    def test_compact_and_spaced_hour_minute_forms(self) -> None:
        text = "Brownies\nPrep time: 1h30m\nCook time: 1 h 30 m\nIngredients\n1 cup cocoa\nInstructions\nBake."
        recipe = extract_from_text(text)
        self.assertEqual(recipe.prep_time, 90)
        self.assertEqual(recipe.cook_time, 90)
        self.assertEqual(recipe.title, "Brownies")


class TitleTests(unittest.TestCase):
    def test_title_with_number_and_keyword_prefix(self) -> None:
        text = "Best 3-Ingredient Cookies\nIngredients\n1 cup butter\n2 cups flour\nInstructions\nMix and bake."
        self.assertEqual(extract_from_text(text).title, "Best 3-Ingredient Cookies")

    def test_other_prefixed_words_are_not_metadata(self) -> None:
        for title in ("Timeless 1950s Meatloaf", "Preppy 5 Minute Salad", "Totally 2 Good Wraps"):
            text = f"{title}\nIngredients\n1 onion\nInstructions\nCook it."
            self.assertEqual(extract_from_text(text).title, title)

    def test_time_line_is_skipped_for_title(self) -> None:
        text = "Cook time: 20 minutes\nRoast Carrots\nIngredients\n4 carrots\nInstructions\nRoast."
        self.assertEqual(extract_from_text(text).title, "Roast Carrots")


class FallbackSplitTests(unittest.TestCase):
    def test_midpoint_split(self) -> None:
        text = "Lemon Cake\n2 lemons\n200 g sugar\nBeat the eggs.\nBake for 40 minutes."
        attempt = attempt_from_text(text)
        self.assertEqual(attempt.confidence, 0.3)
        self.assertEqual(attempt.recipe.title, "Lemon Cake")
        self.assertEqual(attempt.recipe.ingredients, ["2 lemons", "200 g sugar"])
        self.assertEqual(attempt.recipe.instructions, ["Beat the eggs.", "Bake for 40 minutes."])

    def test_headerless_text_fills_both_sections(self) -> None:
        for n in range(4, 9):
            text = "\n".join(f"Fruit {i} salad" for i in range(n))
            recipe = extract_from_text(text)
            self.assertTrue(recipe.ingredients, n)
            self.assertTrue(recipe.instructions, n)


class EmptyInputTests(unittest.TestCase):
    def test_blank_text_raises(self) -> None:
        with self.assertRaises(HeuristicExtractionEmpty):
            attempt_from_text("   \n  ")
        with self.assertRaises(HeuristicExtractionEmpty):
            attempt_from_text("")

    def test_header_only_raises(self) -> None:
        with self.assertRaises(HeuristicExtractionEmpty):
            extract_from_text("Ingredients")


if __name__ == "__main__":
    unittest.main()
