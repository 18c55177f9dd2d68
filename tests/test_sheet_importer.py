"""
Legacy spreadsheet import tests.
"""

import pandas as pd
import pytest

import import_sheet
from thehub.domain import ReviewScope, VoteType
from thehub.infrastructure.config import Settings, StorageSettings
from thehub.infrastructure.importer import SheetImporter, import_sheet as import_into
from thehub.infrastructure.persistence import MemoryStorage, SqliteStorage


@pytest.fixture
def legacy_workbook(tmp_path):
    """A workbook laid out like the legacy Votes / Reviews / Meta tabs."""
    path = tmp_path / "legacy.xlsx"
    votes = pd.DataFrame([
        ["B1", "alice", "like", "2024-06-01T10:00:00.000Z", "1.2.3.4"],
        ["B1", "bob", "dislike", "2024-06-01T11:00:00.000Z", ""],
        ["B1", "alice", "dislike", "2024-06-02T09:00:00.000Z", ""],
        ["B2", "", "like", "", ""],
        ["B2", "carol", "meh", "", ""],
    ], columns=["BusinessID", "Username", "VoteType", "Timestamp", "IP"])
    reviews = pd.DataFrame([
        ["P1", "alice", 5, "Beautiful", "2024-06-01T10:00:00.000Z", ""],
        ["P1", "bob", 3, "Okay", "2024-06-01T12:00:00.000Z", ""],
        ["P1", "carol", 9, "Off the scale", "", ""],
    ], columns=["ProductID", "Username", "Rating", "ReviewText", "Timestamp", "IP"])
    meta = pd.DataFrame([
        ["username_alice", "true"],
        ["username_bob", "true"],
        ["username_ghost", "false"],
        ["schema_version", "2"],
    ], columns=["Key", "Value"])
    notes = pd.DataFrame([["hello"]], columns=["Notes"])

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        votes.to_excel(writer, sheet_name="Votes", index=False)
        reviews.to_excel(writer, sheet_name="Reviews", index=False)
        meta.to_excel(writer, sheet_name="Meta", index=False)
        notes.to_excel(writer, sheet_name="Notes", index=False)
    return path


def test_imports_every_recognised_sheet(legacy_workbook):
    storage = MemoryStorage()

    results = SheetImporter(storage).import_file(str(legacy_workbook))

    assert set(results) == {"Votes", "Reviews", "Meta"}
    assert results["Votes"]["added"] == 2
    assert results["Votes"]["updated"] == 1
    assert results["Votes"]["skipped"] == 1
    assert len(results["Votes"]["errors"]) == 1
    assert results["Reviews"]["added"] == 2
    assert results["Reviews"]["errors"][0].startswith("Row 4:")
    assert results["Meta"] == {"added": 2, "updated": 0, "skipped": 2, "errors": []}


def test_imported_rows_follow_ledger_rules(legacy_workbook):
    storage = MemoryStorage()
    SheetImporter(storage).import_file(str(legacy_workbook))

    alice = storage.votes.get("B1", "alice")
    assert alice.vote_type == VoteType.DISLIKE
    assert alice.timestamp == "2024-06-02T09:00:00+00:00"

    review = storage.reviews.get(ReviewScope.PRODUCT, "P1", "alice")
    assert (review.rating, review.text) == (5, "Beautiful")
    assert storage.reviews.get(ReviewScope.PRODUCT, "P1", "carol") is None

    assert storage.usernames.exists("alice")
    assert not storage.usernames.exists("ghost")


def test_reimport_updates_instead_of_duplicating(legacy_workbook, tmp_path):
    storage = SqliteStorage(str(tmp_path / "thehub.db"))
    import_into(storage, str(legacy_workbook))

    results = import_into(storage, str(legacy_workbook), sheet_name="Votes")

    assert results["Votes"]["added"] == 0
    assert results["Votes"]["updated"] == 3
    assert len(storage.votes.list_by_subject("B1")) == 2


def test_business_review_csv(tmp_path):
    path = tmp_path / "business_reviews.csv"
    path.write_text(
        "Scope,SubjectID,VoterID,Username,Rating,ReviewText,Timestamp\n"
        "business,B7,device-1,alice,4,Friendly staff,2024-06-01T10:00:00+00:00\n"
        "product,P7,device-1,alice,2,,\n"
    )
    storage = MemoryStorage()

    results = SheetImporter(storage).import_file(str(path))

    assert results["business_reviews"]["added"] == 2
    business = storage.reviews.get(ReviewScope.BUSINESS, "B7", "device-1")
    assert business.username == "alice"
    assert business.text == "Friendly staff"
    assert storage.reviews.get(ReviewScope.PRODUCT, "P7", "device-1").rating == 2


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        SheetImporter(MemoryStorage()).import_file(str(tmp_path / "nope.xlsx"))


def test_unsupported_format(tmp_path):
    path = tmp_path / "export.json"
    path.write_text("{}")

    with pytest.raises(ValueError, match="Unsupported file format"):
        SheetImporter(MemoryStorage()).import_file(str(path))


def test_votes_sheet_without_user_column(tmp_path):
    path = tmp_path / "votes.csv"
    path.write_text("BusinessID,VoteType\nB1,like\n")

    with pytest.raises(ValueError, match="Could not detect"):
        SheetImporter(MemoryStorage()).import_file(str(path))


# ── Runner ────────────────────────────────────────────────────────

def test_run_import_reports_row_errors(legacy_workbook, tmp_path, monkeypatch, capsys):
    settings = Settings(storage=StorageSettings(backend="sqlite", db_path=tmp_path / "run.db"))
    monkeypatch.setattr(import_sheet, "get_settings", lambda: settings)

    code = import_sheet.run_import(str(legacy_workbook))

    assert code == 2
    assert "Votes: 2 added, 1 updated, 1 skipped, 1 errors" in capsys.readouterr().out


def test_run_import_missing_file(tmp_path, monkeypatch):
    settings = Settings(storage=StorageSettings(backend="memory"))
    monkeypatch.setattr(import_sheet, "get_settings", lambda: settings)

    assert import_sheet.run_import(str(tmp_path / "missing.xlsx")) == 1
