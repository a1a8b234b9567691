"""Static marketplace reference data: categories, subcategories and locations."""

from __future__ import annotations

CATEGORY_ALL = "all"

CATEGORIES: dict[str, dict] = {
    "crops": {
        "label": "Crops",
        "icon": "\U0001F33E",
        "subcategories": ["Maize", "Sorghum", "Rice", "Banana", "Sesame"],
    },
    "livestock": {
        "label": "Livestock",
        "icon": "\U0001F404",
        "subcategories": ["Camel", "Cow", "Goat", "Sheep"],
    },
}

LOCATIONS: list[str] = [
    "Mogadishu",
    "Hargeisa",
    "Kismayo",
    "Baidoa",
    "Garowe",
    "Bosaso",
    "Beledweyne",
    "Jowhar",
    "Merca",
    "Burao",
]

PLACEHOLDER_IMAGE = "/placeholder.svg"

DEFAULT_PRICE = "Negotiable"


def subcategories_for(category: str) -> list[str]:
    info = CATEGORIES.get(category)
    if not info:
        return []
    return list(info["subcategories"])


def all_subcategories() -> list[str]:
    out: list[str] = []
    for info in CATEGORIES.values():
        out.extend(info["subcategories"])
    return out


def is_valid_pair(category: str, subcategory: str) -> bool:
    return subcategory in subcategories_for(category)


def as_dict() -> dict:
    return {
        "categories": [
            {"key": key, "label": info["label"], "icon": info["icon"], "subcategories": list(info["subcategories"])}
            for key, info in CATEGORIES.items()
        ],
        "locations": list(LOCATIONS),
    }
