"""
Spreadsheet Repository - Workbook-Backed Ledgers
=================================================

Keeps the ledgers in an .xlsx workbook with one sheet per table
(Votes, Reviews, Meta) and a header row on each, the same layout as
the legacy Apps Script sheet.

ARCHITECTURAL DECISION:
- The workbook is loaded once into pandas DataFrames (all cells as text)
- Every mutation rewrites the workbook; data volumes are small
- Mutations work on a copy, so a failed save leaves the loaded sheets unchanged
- Missing sheets or header rows are created by init(), idempotently
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from ...domain.errors import StorageError
from ...domain.models import Review, ReviewScope, Vote, VoteType
from ...domain.stores import ReviewStore, Storage, UsernameStore, VoteStore

logger = logging.getLogger(__name__)

WORKBOOK_FILE = "thehub.xlsx"

VOTES_SHEET = "Votes"
REVIEWS_SHEET = "Reviews"
META_SHEET = "Meta"

SHEET_COLUMNS = {
    VOTES_SHEET: ["SubjectID", "VoterID", "Username", "VoteType", "Timestamp"],
    REVIEWS_SHEET: ["Scope", "SubjectID", "VoterID", "Username", "Rating", "ReviewText", "Timestamp"],
    META_SHEET: ["Key", "Value"],
}

USERNAME_KEY_PREFIX = "username_"


class Workbook:
    """
    In-memory copy of the workbook, written back on save().

    Usage:
        wb = Workbook("thehub.xlsx")
        wb.init()
        votes = wb.sheet("Votes")
    """

    def __init__(self, path: str = WORKBOOK_FILE):
        self.path = Path(path)
        self._sheets: Optional[Dict[str, pd.DataFrame]] = None

    def init(self) -> None:
        """Load the workbook, creating missing sheets and header rows."""
        if self._sheets is not None:
            return

        try:
            raw = {}
            if self.path.exists():
                raw = pd.read_excel(self.path, sheet_name=None, dtype=str, engine="openpyxl")

            sheets = {}
            changed = not self.path.exists()
            for name, columns in SHEET_COLUMNS.items():
                df = raw.get(name)
                if df is None or list(df.columns) != columns:
                    changed = True
                if df is None:
                    df = pd.DataFrame(columns=columns)
                sheets[name] = df.reindex(columns=columns).fillna("").astype(str).reset_index(drop=True)

            self._sheets = sheets
            if changed:
                self.save()
        except StorageError:
            self._sheets = None
            raise
        except Exception as e:
            self._sheets = None
            raise StorageError(f"Cannot load workbook {self.path}: {e}") from e

        logger.info(f"Workbook initialized: {self.path}")

    def sheet(self, name: str) -> pd.DataFrame:
        if self._sheets is None:
            self.init()
        return self._sheets[name]

    def commit(self, name: str, df: pd.DataFrame) -> None:
        """Replace one sheet and save; the old sheet is kept if the save fails."""
        previous = self._sheets[name]
        self._sheets[name] = df.reset_index(drop=True)
        try:
            self.save()
        except StorageError:
            self._sheets[name] = previous
            raise

    def save(self) -> None:
        """Write every sheet back to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with pd.ExcelWriter(self.path, engine="openpyxl") as writer:
                for name, df in self._sheets.items():
                    df.to_excel(writer, sheet_name=name, index=False)
        except Exception as e:
            raise StorageError(f"Cannot write workbook {self.path}: {e}") from e


def _find_row(df: pd.DataFrame, **match) -> Optional[int]:
    """First row whose columns equal the given values (first match wins)."""
    mask = pd.Series(True, index=df.index)
    for column, value in match.items():
        mask &= df[column] == value
    matches = df.index[mask]
    return matches[0] if len(matches) else None


class SpreadsheetVoteStore(VoteStore):

    def __init__(self, workbook: Workbook):
        self._wb = workbook

    def init(self) -> None:
        self._wb.init()

    def get(self, subject_id: str, voter_id: str) -> Optional[Vote]:
        df = self._wb.sheet(VOTES_SHEET)
        idx = _find_row(df, SubjectID=subject_id, VoterID=voter_id)
        return self._row_to_vote(df.loc[idx]) if idx is not None else None

    def upsert(self, vote: Vote) -> bool:
        df = self._wb.sheet(VOTES_SHEET).copy()
        idx = _find_row(df, SubjectID=vote.subject_id, VoterID=vote.voter_id)
        if idx is None:
            df.loc[len(df)] = [vote.subject_id, vote.voter_id, vote.username,
                               vote.vote_type.value, vote.timestamp]
        else:
            df.loc[idx, ["Username", "VoteType", "Timestamp"]] = [
                vote.username, vote.vote_type.value, vote.timestamp
            ]
        self._wb.commit(VOTES_SHEET, df)
        return idx is None

    def delete(self, subject_id: str, voter_id: str) -> bool:
        df = self._wb.sheet(VOTES_SHEET)
        idx = _find_row(df, SubjectID=subject_id, VoterID=voter_id)
        if idx is None:
            return False
        self._wb.commit(VOTES_SHEET, df.drop(index=idx))
        return True

    def list_by_subject(self, subject_id: str) -> List[Vote]:
        df = self._wb.sheet(VOTES_SHEET)
        rows = df[df["SubjectID"] == subject_id]
        return [self._row_to_vote(row) for _, row in rows.iterrows()]

    def _row_to_vote(self, row: pd.Series) -> Vote:
        return Vote(
            subject_id=row["SubjectID"],
            voter_id=row["VoterID"],
            vote_type=VoteType(row["VoteType"]),
            timestamp=row["Timestamp"],
            username=row["Username"],
        )


class SpreadsheetReviewStore(ReviewStore):

    def __init__(self, workbook: Workbook):
        self._wb = workbook

    def init(self) -> None:
        self._wb.init()

    def get(self, scope: ReviewScope, subject_id: str, voter_id: str) -> Optional[Review]:
        df = self._wb.sheet(REVIEWS_SHEET)
        idx = _find_row(df, Scope=scope.value, SubjectID=subject_id, VoterID=voter_id)
        return self._row_to_review(df.loc[idx]) if idx is not None else None

    def upsert(self, review: Review) -> bool:
        df = self._wb.sheet(REVIEWS_SHEET).copy()
        idx = _find_row(df, Scope=review.scope.value, SubjectID=review.subject_id, VoterID=review.voter_id)
        if idx is None:
            df.loc[len(df)] = [review.scope.value, review.subject_id, review.voter_id, review.username,
                               str(review.rating), review.text, review.timestamp]
        else:
            df.loc[idx, ["Username", "Rating", "ReviewText", "Timestamp"]] = [
                review.username, str(review.rating), review.text, review.timestamp
            ]
        self._wb.commit(REVIEWS_SHEET, df)
        return idx is None

    def list_by_subject(self, scope: ReviewScope, subject_id: str) -> List[Review]:
        df = self._wb.sheet(REVIEWS_SHEET)
        rows = df[(df["Scope"] == scope.value) & (df["SubjectID"] == subject_id)]
        return [self._row_to_review(row) for _, row in rows.iterrows()]

    def _row_to_review(self, row: pd.Series) -> Review:
        return Review(
            scope=ReviewScope(row["Scope"]),
            subject_id=row["SubjectID"],
            voter_id=row["VoterID"],
            rating=int(float(row["Rating"])),
            text=row["ReviewText"],
            timestamp=row["Timestamp"],
            username=row["Username"],
        )


class SpreadsheetUsernameStore(UsernameStore):
    """Usernames kept as 'username_<name>' / 'true' rows of the Meta sheet."""

    def __init__(self, workbook: Workbook):
        self._wb = workbook

    def init(self) -> None:
        self._wb.init()

    def exists(self, username: str) -> bool:
        df = self._wb.sheet(META_SHEET)
        return _find_row(df, Key=USERNAME_KEY_PREFIX + username, Value="true") is not None

    def add(self, username: str) -> None:
        df = self._wb.sheet(META_SHEET).copy()
        df.loc[len(df)] = [USERNAME_KEY_PREFIX + username, "true"]
        self._wb.commit(META_SHEET, df)


class SpreadsheetStorage(Storage):
    """All three stores in one workbook."""

    name = "spreadsheet"

    def __init__(self, path: str = WORKBOOK_FILE):
        self.workbook = Workbook(path)
        super().__init__(
            SpreadsheetVoteStore(self.workbook),
            SpreadsheetReviewStore(self.workbook),
            SpreadsheetUsernameStore(self.workbook),
        )
