"""Category cleanup for listings."""
import re
from typing import Dict, List, Optional
from loguru import logger
from sqlalchemy.orm import Session
import models


VALID_CATEGORIES = [
    "refillery", "bulk-foods", "zero-waste", "thrift-consignment",
    "farmers-market", "manufacturer", "wholesale", "service-provider",
]

# Aliases found in imported data
CATEGORY_ALIASES: Dict[str, str] = {
    "sustainable-goods": "zero-waste",
    "sustainable": "zero-waste",
    "eco-friendly": "zero-waste",
    "bulk": "bulk-foods",
    "thrift": "thrift-consignment",
    "consignment": "thrift-consignment",
}

NAME_KEYWORDS = [
    ("refillery", ("refill", "refinery")),
    ("bulk-foods", ("bulk", "pantry", "kitchen", "market")),
    ("thrift-consignment", ("thrift", "consignment")),
]


def normalize_category(raw: str, valid: Optional[List[str]] = None) -> Optional[str]:
    """Map a raw category value to a known id, or None when it cannot be mapped."""
    valid = valid or VALID_CATEGORIES
    normalized = re.sub(r"\s+", "-", raw.strip().lower()).lstrip("-")
    if normalized in valid:
        return normalized
    return CATEGORY_ALIASES.get(normalized)


def clean_categories(raw: List[str], valid: Optional[List[str]] = None) -> List[str]:
    """
    Normalize a category list.

    Entries joined with ';' by a bad CSV parse are split first. Unknown values
    are dropped and duplicates removed, keeping the first occurrence.

    Example:
        >>> clean_categories(["Refillery;bulk", "sustainable-goods"])
        ['refillery', 'bulk-foods', 'zero-waste']
    """
    expanded = []
    for entry in raw or []:
        expanded.extend(entry.split(";") if ";" in entry else [entry])

    cleaned = []
    for entry in expanded:
        category = normalize_category(entry, valid)
        if category and category not in cleaned:
            cleaned.append(category)
    return cleaned


def guess_categories(name: str) -> List[str]:
    """Guess categories from a business name; always includes zero-waste."""
    lowered = name.lower()
    guessed = [category for category, keywords in NAME_KEYWORDS if any(k in lowered for k in keywords)]
    if "zero-waste" not in guessed:
        guessed.append("zero-waste")
    return guessed


def fix_categories(db: Session, valid: Optional[List[str]] = None) -> int:
    """
    Clean the category lists of every store.

    Args:
        db: Database session
        valid: Known category ids (defaults to VALID_CATEGORIES)

    Returns:
        Number of stores changed
    """
    fixed = 0
    for row in db.query(models.Store).all():
        original = list(row.categories or [])
        cleaned = clean_categories(original, valid)
        if cleaned != original:
            logger.info(f"{row.name}: [{', '.join(original)}] -> [{', '.join(cleaned)}]")
            row.categories = cleaned
            fixed += 1
    db.commit()
    logger.info(f"Fixed {fixed} stores")
    return fixed


def fill_empty_categories(db: Session) -> int:
    """Assign guessed categories to stores whose category list is empty."""
    empty = [row for row in db.query(models.Store).all() if not row.categories]
    logger.info(f"Found {len(empty)} stores with empty categories")
    for row in empty:
        row.categories = guess_categories(row.name)
        logger.info(f"{row.name}: [] -> [{', '.join(row.categories)}]")
    db.commit()
    return len(empty)
