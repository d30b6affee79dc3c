"""CSV export of approved indicator reviews."""
import csv
import io
import logging
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import aliased

from ..models import Champion, Indicator, IndicatorReview, Panel, ReviewSubmission, SubmissionStatus
from ..storage.database import Database

logger = logging.getLogger(__name__)

# (header, row key) in output order
EXPORT_COLUMNS = [
    ("Submission ID", "submission_id"),
    ("Panel Name", "panel_name"),
    ("Panel Framework", "panel_framework"),
    ("Panel Category", "panel_category"),
    ("Submitted At", "submitted_at"),
    ("Reviewed At", "reviewed_at"),
    ("Admin Notes", "admin_notes"),
    ("Champion Name", "champion_name"),
    ("Champion Email", "champion_email"),
    ("Champion Company", "champion_company"),
    ("Reviewed By", "reviewed_by"),
    ("Indicator ID", "indicator_id"),
    ("Indicator Name", "indicator_name"),
    ("Indicator Code", "indicator_code"),
    ("Indicator Description", "indicator_description"),
    ("Importance", "importance"),
    ("Rating", "rating"),
    ("Rationale", "rationale"),
    ("Cost to Collect", "cost_to_collect"),
    ("Suggested Tier", "suggested_tier"),
    ("SDGs", "sdgs"),
    ("Tags", "tags"),
    ("Notes", "notes"),
    ("Review Created At", "review_created_at"),
]


async def approved_review_rows(db: Database) -> list[dict[str, Any]]:
    """One flat row per indicator review of every approved submission.

    Rows are ordered by review date (newest submission first), then by
    indicator review id.
    """
    reviewer = aliased(Champion)
    query = (
        select(ReviewSubmission, Panel, Champion, reviewer.full_name, IndicatorReview, Indicator)
        .join(Panel, Panel.id == ReviewSubmission.panel_id)
        .join(Champion, Champion.id == ReviewSubmission.champion_id)
        .outerjoin(reviewer, reviewer.id == ReviewSubmission.reviewed_by)
        .join(IndicatorReview, IndicatorReview.submission_id == ReviewSubmission.id)
        .join(Indicator, Indicator.id == IndicatorReview.indicator_id)
        .where(ReviewSubmission.status == SubmissionStatus.APPROVED.value)
        .order_by(ReviewSubmission.reviewed_at.desc(), ReviewSubmission.id.desc(), IndicatorReview.id)
    )

    async with db.session() as session:
        result = await session.execute(query)
        records = result.all()

    rows = []
    for submission, panel, champion, reviewer_name, review, indicator in records:
        rows.append({
            "submission_id": submission.id,
            "panel_name": panel.name,
            "panel_framework": panel.primary_framework or "",
            "panel_category": panel.category or "",
            "submitted_at": _iso(submission.submitted_at),
            "reviewed_at": _iso(submission.reviewed_at),
            "admin_notes": submission.admin_notes or "",
            "champion_name": champion.full_name,
            "champion_email": champion.email,
            "champion_company": champion.company or "",
            "reviewed_by": reviewer_name or "",
            "indicator_id": indicator.id,
            "indicator_name": indicator.name,
            "indicator_code": indicator.code or "",
            "indicator_description": indicator.description or "",
            "importance": review.importance or "",
            "rating": review.rating if review.rating is not None else "",
            "rationale": review.rationale or "",
            "cost_to_collect": review.cost_to_collect or "",
            "suggested_tier": review.suggested_tier or "",
            "sdgs": "; ".join(str(s) for s in review.sdgs or []),
            "tags": "; ".join(review.tags or []),
            "notes": review.notes or "",
            "review_created_at": _iso(review.created_at),
        })

    logger.debug(f"Prepared {len(rows)} approved indicator reviews for export")
    return rows


def render_csv(rows: Iterable[dict[str, Any]]) -> str:
    """Render export rows as CSV with a header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for row in rows:
        writer.writerow([row.get(key, "") for _, key in EXPORT_COLUMNS])
    return buffer.getvalue()


def _iso(value) -> str:
    return value.isoformat() if value is not None else ""
