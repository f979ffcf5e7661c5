"""One-off repair of post rows written before lifecycle defaults were enforced."""

import logging
from typing import Dict
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from postdesk.models.post import Post

logger = logging.getLogger(__name__)

posts_table = Post.__table__


def backfill_post_defaults(db: Session) -> Dict[str, object]:
    """
    Give every post a ``deleted`` flag and a ``status``.

    Idempotent: rows that already carry both values are left untouched, so a
    second run reports zero updates. Returns the update counts and the
    resulting per-state totals.
    """
    deleted_result = db.execute(
        update(posts_table)
        .where(posts_table.c.deleted.is_(None))
        .values(deleted=False)
    )
    status_result = db.execute(
        update(posts_table)
        .where(posts_table.c.status.is_(None))
        .values(status="draft")
    )
    db.commit()

    def count(*criteria) -> int:
        query = select(func.count()).select_from(posts_table)
        for criterion in criteria:
            query = query.where(criterion)
        return db.execute(query).scalar_one()

    summary = {
        "updated_deleted_field": deleted_result.rowcount,
        "updated_status_field": status_result.rowcount,
        "counts": {
            "total": count(),
            "non_deleted": count(posts_table.c.deleted == False),
            "deleted": count(posts_table.c.deleted == True),
            "draft": count(posts_table.c.status == "draft"),
            "published": count(posts_table.c.status == "published"),
        },
    }
    logger.info(f"Post defaults backfilled: {summary}")
    return summary
