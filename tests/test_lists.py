from __future__ import annotations

import unittest

from recipe_import.lists import (
    format_ingredient,
    format_instruction,
    format_tool,
    parse_smart_list,
    split_csv,
    to_lines,
)
from recipe_import.models import ExtractionAttempt, IngredientLine, Recipe


class ParseSmartListTests(unittest.TestCase):
    def test_json_array_string(self) -> None:
        self.assertEqual(parse_smart_list('["Flour","Sugar"]'), ["Flour", "Sugar"])

    def test_newline_text(self) -> None:
        self.assertEqual(parse_smart_list("Flour\nSugar"), ["Flour", "Sugar"])
        self.assertEqual(parse_smart_list("  Flour \n\n Sugar  \n"), ["Flour", "Sugar"])

    def test_double_encoded_list(self) -> None:
        self.assertEqual(parse_smart_list(['[{"a":1}]']), [{"a": 1}])

    def test_json_object_is_wrapped(self) -> None:
        self.assertEqual(
            parse_smart_list('{"amount": "1", "item": "egg"}'),
            [{"amount": "1", "item": "egg"}],
        )

    def test_broken_json_falls_back_to_lines(self) -> None:
        self.assertEqual(parse_smart_list("[not json"), ["[not json"])
        self.assertEqual(parse_smart_list(["[broken"]), ["[broken"])

    def test_empty_and_scalar(self) -> None:
        self.assertEqual(parse_smart_list(None), [])
        self.assertEqual(parse_smart_list(""), [])
        self.assertEqual(parse_smart_list([]), [])
        self.assertEqual(parse_smart_list(5), [5])

    def test_real_list_passes_through(self) -> None:
        self.assertEqual(parse_smart_list(["a", "b"]), ["a", "b"])


class FormatterTests(unittest.TestCase):
    def test_ingredient_variants(self) -> None:
        self.assertEqual(format_ingredient("1 egg"), "1 egg")
        self.assertEqual(format_ingredient({"amount": "2", "item": "eggs"}), "2 eggs")
        self.assertEqual(format_ingredient({"qty": "2", "name": "eggs"}), "2 eggs")
        self.assertEqual(format_ingredient({"item": "salt"}), "salt")
        self.assertEqual(format_ingredient({"foo": 1}), '{"foo": 1}')
        self.assertEqual(format_ingredient(IngredientLine(amount="1", item="lemon")), "1 lemon")
        self.assertEqual(format_ingredient(None), "")

    def test_tool_and_instruction(self) -> None:
        self.assertEqual(format_tool({"tool": "Whisk"}), "Whisk")
        self.assertEqual(format_tool("Pan"), "Pan")
        self.assertEqual(format_instruction({"step": "Mix"}), "Mix")
        self.assertEqual(format_instruction({"description": "Bake"}), "Bake")
        self.assertEqual(format_instruction({"other": 1}), '{"other": 1}')

    def test_empty_object_renders_as_json(self) -> None:
        self.assertEqual(format_ingredient({}), "{}")
        self.assertEqual(format_tool({}), "{}")
        self.assertEqual(format_instruction({}), "{}")
        self.assertEqual(format_ingredient(""), "")

    def test_to_lines_drops_blanks(self) -> None:
        self.assertEqual(to_lines(["Mix", "", {"text": "Bake"}], format_instruction), ["Mix", "Bake"])

    def test_split_csv(self) -> None:
        self.assertEqual(split_csv("dinner, easy\nvegan", format_tool), ["dinner", "easy", "vegan"])
        self.assertEqual(split_csv('["Oven", {"name": "Bowl"}]', format_tool), ["Oven", "Bowl"])


class RecipeCoercionTests(unittest.TestCase):
    def test_joined_strings_become_lines(self) -> None:
        recipe = Recipe(ingredients="1 egg\n2 cups flour", instructions="Mix.\nBake.")
        self.assertEqual(recipe.ingredients, ["1 egg", "2 cups flour"])
        self.assertEqual(recipe.instructions, ["Mix.", "Bake."])

    def test_structured_ingredient_json(self) -> None:
        recipe = Recipe(ingredients='[{"amount":"2","item":"eggs"}]')
        self.assertEqual(recipe.ingredients, [IngredientLine(amount="2", item="eggs")])
        self.assertEqual(recipe.ingredient_text(), "2 eggs")

    def test_numbers_and_aliases(self) -> None:
        recipe = Recipe(title="  Soup \n", prepTime="15 min", cookTime=None, servings="4 people")
        self.assertEqual(recipe.title, "Soup")
        self.assertEqual(recipe.prep_time, 15)
        self.assertEqual(recipe.cook_time, 0)
        self.assertEqual(recipe.servings, 4)

    def test_tags_and_instructions_from_objects(self) -> None:
        recipe = Recipe(tags="dinner, easy", instructions=[{"text": "Mix"}, "Bake"])
        self.assertEqual(recipe.tags, ["dinner", "easy"])
        self.assertEqual(recipe.instructions, ["Mix", "Bake"])

    def test_to_wire(self) -> None:
        recipe = Recipe(title="Soup", ingredients=["1 leek"], instructions=["Boil"], detectedLanguage="EN")
        wire = recipe.to_wire()
        self.assertEqual(wire["prepTime"], 0)
        self.assertEqual(wire["detectedLanguage"], "en")
        self.assertNotIn("prep_time", wire)
        joined = recipe.to_wire(joined=True)
        self.assertEqual(joined["ingredients"], "1 leek")
        self.assertEqual(joined["instructions"], "Boil")

    def test_empty_recipe(self) -> None:
        self.assertTrue(Recipe().is_empty())
        self.assertNotIn("detectedLanguage", Recipe().to_wire())


class ExtractionAttemptTests(unittest.TestCase):
    def test_good_needs_both_sections(self) -> None:
        long_ingredients = ["2 cups plain flour", "1 teaspoon baking soda"]
        long_steps = ["Whisk everything together.", "Bake for 30 minutes."]

        good = ExtractionAttempt("structured", Recipe(ingredients=long_ingredients, instructions=long_steps))
        self.assertTrue(good.is_good)

        thin = ExtractionAttempt("structured", Recipe(ingredients=long_ingredients, instructions=["Bake."]))
        self.assertFalse(thin.is_good)
        self.assertTrue(thin.usable)

        self.assertFalse(ExtractionAttempt("failed").is_good)
        self.assertFalse(ExtractionAttempt("failed").usable)


if __name__ == "__main__":
    unittest.main()
