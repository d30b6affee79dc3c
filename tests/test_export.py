"""Tests for the approved-reviews CSV export."""
import csv
import io

import pytest

from esgchampions.core.services import approved_review_rows, render_csv
from esgchampions.core.services.export import EXPORT_COLUMNS


@pytest.mark.asyncio
async def test_no_rows_without_approvals(db, manager, seed, make_reviews):
    await manager.submit_panel_review(seed.alice.id, seed.panel.id, make_reviews(seed.indicators))

    assert await approved_review_rows(db) == []


@pytest.mark.asyncio
async def test_rows_for_approved_submission(db, manager, engine, seed, make_reviews):
    submission = await manager.submit_panel_review(
        seed.alice.id,
        seed.panel.id,
        make_reviews(seed.indicators[:2], sdgs=[7, 13], tags=["scope1", "energy"]),
    )
    await engine.approve(submission.id, seed.admin.id, comment="Thorough")
    # Rejected work never shows up in the export
    rejected = await manager.submit_panel_review(
        seed.bob.id, seed.panel.id, make_reviews(seed.indicators)
    )
    await engine.reject(rejected.id, seed.admin.id, reason="Incomplete")

    rows = await approved_review_rows(db)

    assert len(rows) == 2
    first = rows[0]
    assert first["submission_id"] == submission.id
    assert first["panel_name"] == "Climate & GHG Emissions"
    assert first["panel_framework"] == "GRI"
    assert first["champion_name"] == "Alice Green"
    assert first["champion_email"] == "alice@example.com"
    assert first["reviewed_by"] == "Ada Admin"
    assert first["admin_notes"] == "Thorough"
    assert first["indicator_code"] == "E1-1"
    assert first["importance"] == "important"
    assert first["rating"] == 4
    assert first["sdgs"] == "7; 13"
    assert first["tags"] == "scope1; energy"
    assert [row["indicator_id"] for row in rows] == [i.id for i in seed.indicators[:2]]


def test_render_csv_quotes_fields():
    row = {key: "" for _, key in EXPORT_COLUMNS}
    row.update({
        "submission_id": 1,
        "panel_name": "Climate & GHG Emissions",
        "rationale": 'Material, but "hard" to measure',
        "rating": 5,
    })

    text = render_csv([row])

    assert text.startswith("Submission ID,Panel Name,Panel Framework,")
    assert text.endswith("\r\n")
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[0] == [header for header, _ in EXPORT_COLUMNS]
    assert parsed[1][0] == "1"
    assert parsed[1][17] == 'Material, but "hard" to measure'
    assert '"Material, but ""hard"" to measure"' in text


def test_render_csv_header_only():
    text = render_csv([])

    assert text.count("\r\n") == 1
    assert len(next(csv.reader(io.StringIO(text)))) == len(EXPORT_COLUMNS)
