"""Rewrite legacy store type values."""
from loguru import logger
from sqlalchemy.orm import Session
import models
from directory.records import StoreType


def normalize_legacy_types(db: Session) -> int:
    """
    Replace the legacy type 'both' with 'brick-and-mortar+online'.

    Args:
        db: Database session

    Returns:
        Number of stores rewritten
    """
    replacement = StoreType.parse("both").serialize()
    rows = db.query(models.Store).filter(models.Store.type == "both").all()
    if not rows:
        logger.info("No stores with type 'both' found.")
        return 0

    for row in rows:
        logger.info(f"{row.name}: both -> {replacement}")
        row.type = replacement
    db.commit()
    logger.info(f"Rewrote {len(rows)} store types")
    return len(rows)
