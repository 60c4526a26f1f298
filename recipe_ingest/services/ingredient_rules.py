"""Vocabulary tables for ingredient and nutrient standardization.

Parsing code reads these tables instead of embedding literals, so the
vocabulary can be extended (and tested) without touching control flow.
All keys are lower-case.
"""

import re

# Phrases meaning "no fixed quantity"; the line's unit becomes "to taste".
TO_TASTE_MARKERS: tuple[str, ...] = ("to taste", "as needed")

TO_TASTE_UNIT = "to taste"

# Preparation words stripped from candidate ingredient names. Words that
# change what the food is ("sweet" potato, "hot" sauce) are deliberately absent.
DESCRIPTOR_WORDS: tuple[str, ...] = (
    "chopped",
    "sliced",
    "diced",
    "minced",
    "finely",
    "coarsely",
    "thinly",
    "roughly",
    "fresh",
    "freshly",
    "dried",
    "ground",
    "canned",
    "crushed",
    "peeled",
    "drained",
    "rinsed",
    "toasted",
    "roasted",
    "cooked",
    "uncooked",
    "raw",
    "organic",
    "softened",
    "melted",
    "cubed",
    "shredded",
    "grated",
    "halved",
    "quartered",
    "pitted",
    "seeded",
    "trimmed",
    "loosely",
    "packed",
    "squeezed",
    "beaten",
    "divided",
    "optional",
    "plus",
)

# Trailing phrases that describe usage rather than the ingredient.
TRAILING_PHRASES: tuple[str, ...] = (
    "for garnish",
    "for serving",
    "for dusting",
    "or more",
    "plus more",
    "as needed",
    "to taste",
)

# Size words that stand in for a count ("2 large eggs" -> 2 each).
SIZE_WORDS: frozenset[str] = frozenset(
    {"large", "medium", "small", "whole", "jumbo", "extra-large"}
)

# Spelled-out or abbreviated unit tokens mapped to canonical unit names.
UNIT_ALIASES: dict[str, str] = {
    "c": "cup",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tbs": "tbsp",
    "tbl": "tbsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "gram": "g",
    "grams": "g",
    "gr": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "milligram": "mg",
    "milligrams": "mg",
    "ounce": "oz",
    "ounces": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "pt": "pint",
    "qt": "quart",
    "gal": "gallon",
    "pkg": "package",
    "leaves": "leaf",
    "ug": "µg",
    "mcg": "µg",
}

# Unicode vulgar fractions rewritten to ASCII before quantity matching.
VULGAR_FRACTIONS: dict[str, str] = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅕": "1/5",
    "⅖": "2/5",
    "⅗": "3/5",
    "⅘": "4/5",
    "⅙": "1/6",
    "⅚": "5/6",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}

# Core nutrients guaranteed for every ingredient: (canonical name, default unit).
CORE_NUTRIENTS: tuple[tuple[str, str], ...] = (
    ("Calories", "kcal"),
    ("Protein", "g"),
    ("Fat", "g"),
    ("Carbohydrates", "g"),
)

# FoodData Central nutrient names mapped to canonical names. Lookups try the
# full name first, then the part before the first comma.
NUTRIENT_SYNONYMS: dict[str, str] = {
    "total lipid": "Fat",
    "energy": "Calories",
    "carbohydrate": "Carbohydrates",
    "carbohydrate, by difference": "Carbohydrates",
    "carbohydrate, by summation": "Carbohydrates",
    "protein": "Protein",
    "sugars, total": "Sugar",
    "sugars, total including nlea": "Sugar",
    "total sugars": "Sugar",
    "sugars": "Sugar",
    "fatty acids, total saturated": "Saturated Fat",
    "fatty acids, total monounsaturated": "Monounsaturated Fat",
    "fatty acids, total polyunsaturated": "Polyunsaturated Fat",
    "fatty acids, total trans": "Trans Fat",
    "fiber, total dietary": "Fiber",
    "sodium": "Sodium",
    "cholesterol": "Cholesterol",
}

# Nutrients reported in several units; only the listed unit is accepted
# (FDC reports Energy in both kcal and kJ).
NUTRIENT_UNIT_PREFERENCES: dict[str, str] = {
    "Calories": "kcal",
}

_descriptor_alternation = "|".join(
    re.escape(word) for word in sorted(DESCRIPTOR_WORDS, key=len, reverse=True)
)
DESCRIPTOR_PATTERN = re.compile(rf"\b(?:{_descriptor_alternation})\b", re.IGNORECASE)

_trailing_alternation = "|".join(re.escape(phrase) for phrase in TRAILING_PHRASES)
TRAILING_PHRASE_PATTERN = re.compile(rf"\s*\b(?:{_trailing_alternation})\b", re.IGNORECASE)

_to_taste_alternation = "|".join(re.escape(marker) for marker in TO_TASTE_MARKERS)
TO_TASTE_PATTERN = re.compile(rf"\b(?:{_to_taste_alternation})\b", re.IGNORECASE)
