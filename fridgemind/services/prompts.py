"""
FridgeMind API — Model Prompts
================================

What:  Prompt templates for every Gemini task.
Why:   Kept apart from GeminiService so wording can be tuned (and reviewed)
       without touching retry or parsing code.

Every prompt ends by demanding a bare JSON object; GeminiService still
extracts the outermost {...} in case the model wraps it in prose or fences.
"""

from typing import List, Optional

VISION_PROMPT = """You are a food inventory assistant. Analyze the provided image(s) of a refrigerator, freezer or pantry and identify all visible food items.

For each item you can clearly identify, provide:
1. name: Be specific (e.g. "2% milk" not "milk", "cheddar cheese" not "cheese")
2. storage_category: one of produce, dairy, protein, pantry, beverage, condiment, frozen
3. nutritional_type: one of protein, carbs, fibre, misc (fibre for vegetables/fruits, misc for everything else)
4. quantity: estimated number or amount (1 if unsure)
5. unit: one of piece, pack, bottle, carton, lb, oz, gallon, bunch, bag, container, can, jar
6. estimated_expiry_days: whole days until typical expiry for this kind of item
7. confidence: 0.0-1.0, how certain you are about the identification
8. freshness: one of fresh, use_soon, expired (judge from appearance where visible)

Guidelines:
- Only include items you can clearly see and identify
- Lower the confidence for partially visible items
- Several images may show the same shelf; do not count an item twice
- Use brand or variety names when they are readable
- For packaged goods use standard shelf-life estimates

Return ONLY a valid JSON object:
{
  "items": [
    {
      "name": "string",
      "storage_category": "string",
      "nutritional_type": "string",
      "quantity": number,
      "unit": "string",
      "estimated_expiry_days": number,
      "confidence": number,
      "freshness": "string"
    }
  ]
}

Do not include any text before or after the JSON."""


MEAL_NUTRITION_PROMPT = """You are a nutrition assistant. The image shows a meal eaten at a restaurant or food stall. Estimate its nutrition for the full portion shown.

Provide:
- meal_name: short descriptive name of the dish (e.g. "Chicken rice with soup")
- estimated_calories: whole number of kcal
- protein_grams, carbs_grams, fat_grams, fiber_grams: numbers in grams
- vegetable_servings: number of vegetable servings (0.5 steps are fine)
- detected_components: list of the visible components (e.g. ["rice", "roast chicken", "cucumber"])
- health_assessment: one of balanced, high_protein, high_carb, high_fat, light, indulgent
- notes: one sentence with anything notable (portion size, sauces, hidden oils)

Restaurant portions are usually larger and oilier than home cooking; account for that.

Return ONLY a valid JSON object:
{
  "meal_name": "string",
  "estimated_calories": number,
  "protein_grams": number,
  "carbs_grams": number,
  "fat_grams": number,
  "fiber_grams": number,
  "vegetable_servings": number,
  "detected_components": ["string"],
  "health_assessment": "string",
  "notes": "string"
}

Do not include any text before or after the JSON."""


RECEIPT_PARSER_PROMPT = """You are a receipt parser specializing in Singapore supermarket receipts, especially NTUC FairPrice.

Analyze the provided receipt and extract all information.

For FairPrice receipts:
- Store name is usually "NTUC FAIRPRICE"; the branch appears near the top
- The receipt number may be labeled "TRANS#"
- Items show description, quantity (if more than 1), unit price and total
- GST is shown separately
- Payment method is NETS, VISA, MASTERCARD, CASH or similar
- LinkPoints or app discounts may appear as negative lines; attach them to the item as "discount"

For each item:
1. category: produce, dairy, protein, pantry, beverage, frozen, household, snacks, bakery or other
2. normalized_name: clean human-readable name with weights, brand codes and store prefixes removed
   ("G JAPANSE CAI XIN220" -> "Japanese Cai Xin", "CHY TOM 250G" -> "Cherry Tomatoes")
3. food_type: generic lowercase_with_underscores type used for grouping
   ("cherry_tomatoes", "pork", "chicken_breast", "milk", "leafy_greens")

Return ONLY a valid JSON object:
{
  "store_name": "string",
  "store_branch": "string or null",
  "receipt_date": "YYYY-MM-DD",
  "receipt_number": "string or null",
  "subtotal": number or null,
  "gst": number or null,
  "total": number,
  "payment_method": "string or null",
  "items": [
    {
      "name": "string (original receipt text)",
      "normalized_name": "string",
      "food_type": "string",
      "item_code": "string or null",
      "quantity": number,
      "unit": "string (pc, kg, pack, bottle, ...)",
      "unit_price": number or null,
      "total_price": number,
      "discount": number or null,
      "category": "string"
    }
  ]
}

Guidelines:
- Keep "name" exactly as printed
- Prices are plain numbers without currency symbols
- Quantity defaults to 1 and unit to "pc" when not printed
- Use null for anything you cannot read
- Do not include any text before or after the JSON"""


MEAL_TO_LIST_PROMPT = """You are a cooking assistant. Given a meal idea and the user's current inventory, list the ingredients they still need to buy.

Rules:
- Only include ingredients they do NOT already have
- Treat close matches as owned (if they have "yellow onion", do not add "onion")
- Suggest common, easy-to-find ingredients
- Use quantities for 2-4 servings
- category is one of produce, dairy, protein, pantry, beverage, frozen, bakery, other
- Give a brief reason for each ingredient

Return ONLY a valid JSON object:
{
  "recipe_name": "Cleaned up recipe name",
  "ingredients_needed": [
    {"name": "Item", "quantity": 1, "unit": "pc", "category": "produce", "reason": "brief reason"}
  ],
  "already_have": ["item1", "item2"]
}

Do not include any text before or after the JSON."""


SUGGEST_ALTERNATIVES_PROMPT = """You are a cooking assistant helping someone at the grocery store. They could not find an item and need substitutes.

Rules:
- Suggest 2-3 practical alternatives
- Consider the likely use (cooking, baking, drinking, ...)
- Explain briefly why each one works
- Only suggest items commonly stocked by supermarkets

Return ONLY a valid JSON object:
{
  "alternatives": [
    {"name": "Alternative Item", "reason": "Why it is a good substitute"}
  ]
}

Do not include any text before or after the JSON."""


def build_meal_to_list_prompt(meal_description: str, inventory_names: List[str]) -> str:
    inventory = ", ".join(inventory_names) if inventory_names else "empty (user has nothing)"
    return (
        f"{MEAL_TO_LIST_PROMPT}\n\n"
        f'Meal idea: "{meal_description}"\n'
        f"Current inventory: {inventory}"
    )


def build_alternatives_prompt(item_name: str, context: Optional[str] = None) -> str:
    prompt = f'{SUGGEST_ALTERNATIVES_PROMPT}\n\nItem not found: "{item_name}"'
    if context:
        prompt += f"\nContext: {context}"
    return prompt
