"""
Sheet Importer - Legacy Spreadsheet Migration
==============================================

Imports votes, reviews and usernames from an exported spreadsheet
(the Votes / Reviews / Meta tabs of the legacy Apps Script backend, or a single
.csv of one of them) into any storage backend.
Supports .xlsx, .xls, and .csv formats.

Columns are auto-detected by name, so "BusinessID", "business_id" and
"Business" all map to the subject column. Existing rows with the same
key are overwritten, so re-running an import is safe.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from ...domain.errors import HubError
from ...domain.models import Review, ReviewScope, Vote, VoteType, parse_rating, parse_vote_type, utc_now
from ...domain.stores import Storage

logger = logging.getLogger(__name__)

# Common column name variations for auto-detection, most specific first
PRODUCT_PATTERNS = ['productid', 'product']
BUSINESS_PATTERNS = ['businessid', 'business', 'subjectid', 'subject']
VOTER_PATTERNS = ['userid', 'voterid', 'username', 'user', 'voter']
USERNAME_PATTERNS = ['username', 'user', 'name']
VOTE_TYPE_PATTERNS = ['votetype', 'vote', 'type']
RATING_PATTERNS = ['rating', 'stars', 'score']
TEXT_PATTERNS = ['reviewtext', 'comment', 'text', 'review']
TIMESTAMP_PATTERNS = ['timestamp', 'createdat', 'date', 'time']
SCOPE_PATTERNS = ['scope']
KEY_PATTERNS = ['key']
VALUE_PATTERNS = ['value']

USERNAME_KEY_PREFIX = "username_"


def _normalize(column: str) -> str:
    return re.sub(r'[^a-z0-9]', '', str(column).lower())


def _clean(value) -> str:
    if value is None:
        return ''
    text = str(value).strip()
    return '' if text.lower() == 'nan' else text


def _timestamp(value) -> str:
    """ISO-8601 UTC timestamp for a sheet cell; blank cells get the current time."""
    text = _clean(value)
    if not text:
        return utc_now()
    try:
        return pd.to_datetime(text, utc=True).isoformat()
    except (ValueError, TypeError):
        return text


class SheetImporter:
    """
    Spreadsheet importer with auto-detection of ledger columns.

    Usage:
        importer = SheetImporter(storage)
        results = importer.import_file("legacy_export.xlsx")
        # Returns: {"Votes": {"added": 12, "updated": 0, "skipped": 1, "errors": []}, ...}
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self.detected_columns: Dict[str, Dict[str, Optional[str]]] = {}

    def import_file(self, file_path: str, sheet_name: Optional[str] = None) -> Dict[str, dict]:
        """
        Import every recognised sheet of a file.

        Args:
            file_path: Path to the file (.xlsx, .xls, .csv)
            sheet_name: Optional single sheet to import

        Returns:
            Per-sheet dict with 'added', 'updated', 'skipped', 'errors'
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        ext = path.suffix.lower()

        try:
            if ext == '.csv':
                sheets = {path.stem: pd.read_csv(file_path, dtype=str)}
            elif ext in ['.xlsx', '.xls']:
                sheets = pd.read_excel(file_path, sheet_name=sheet_name, dtype=str)
                if isinstance(sheets, pd.DataFrame):
                    sheets = {sheet_name: sheets}
            else:
                raise ValueError(f"Unsupported file format: {ext}. Use .xlsx, .xls, or .csv")
        except Exception as e:
            logger.error(f"Failed to read file: {e}")
            raise

        self.storage.init()

        results = {}
        for name, df in sheets.items():
            df.columns = [str(c).strip() for c in df.columns]
            kind = self._detect_kind(df.columns)
            if kind is None:
                logger.warning(f"Sheet '{name}' not recognised, skipping")
                continue
            results[name] = getattr(self, f"_import_{kind}")(name, df)
            logger.info(f"Imported sheet '{name}' as {kind}: {results[name]}")

        return results

    # ── Detection ──────────────────────────────────────────────────

    def _find_column(self, columns, patterns: List[str]) -> Optional[str]:
        """Find column matching the patterns; exact names beat substrings."""
        normalized = {col: _normalize(col) for col in columns}
        for pattern in patterns:
            for col, norm in normalized.items():
                if norm == pattern:
                    return col
        for pattern in patterns:
            for col, norm in normalized.items():
                if pattern in norm:
                    return col
        return None

    def _detect_kind(self, columns) -> Optional[str]:
        if self._find_column(columns, KEY_PATTERNS) and self._find_column(columns, VALUE_PATTERNS):
            return "meta"
        if self._find_column(columns, RATING_PATTERNS):
            return "reviews"
        if self._find_column(columns, VOTE_TYPE_PATTERNS):
            return "votes"
        return None

    def _empty_result(self) -> dict:
        return {'added': 0, 'updated': 0, 'skipped': 0, 'errors': []}

    # ── Votes ──────────────────────────────────────────────────────

    def _import_votes(self, name: str, df: pd.DataFrame) -> dict:
        subject_col = self._find_column(df.columns, BUSINESS_PATTERNS)
        voter_col = self._find_column(df.columns, VOTER_PATTERNS)
        username_col = self._find_column(df.columns, USERNAME_PATTERNS)
        type_col = self._find_column(df.columns, VOTE_TYPE_PATTERNS)
        time_col = self._find_column(df.columns, TIMESTAMP_PATTERNS)

        self.detected_columns[name] = {
            'subject': subject_col, 'voter': voter_col, 'vote_type': type_col, 'timestamp': time_col,
        }
        logger.info(f"Detected columns: {self.detected_columns[name]}")

        if not subject_col or not voter_col:
            raise ValueError(f"Could not detect business and user columns in sheet '{name}'.")

        result = self._empty_result()
        for i, row in df.iterrows():
            subject_id = _clean(row.get(subject_col))
            voter_id = _clean(row.get(voter_col))

            if not subject_id or not voter_id:
                result['skipped'] += 1
                continue

            try:
                vote_type = parse_vote_type(_clean(row.get(type_col)))
                if vote_type == VoteType.REMOVE:
                    raise HubError("Invalid vote type")
                inserted = self.storage.votes.upsert(Vote(
                    subject_id=subject_id,
                    voter_id=voter_id,
                    vote_type=vote_type,
                    timestamp=_timestamp(row.get(time_col)) if time_col else utc_now(),
                    username=_clean(row.get(username_col)) if username_col else voter_id,
                ))
                result['added' if inserted else 'updated'] += 1
            except HubError as e:
                result['errors'].append(f"Row {i + 2}: {e}")

        return result

    # ── Reviews ────────────────────────────────────────────────────

    def _import_reviews(self, name: str, df: pd.DataFrame) -> dict:
        product_col = self._find_column(df.columns, PRODUCT_PATTERNS)
        business_col = self._find_column(df.columns, BUSINESS_PATTERNS)
        scope_col = self._find_column(df.columns, SCOPE_PATTERNS)
        voter_col = self._find_column(df.columns, VOTER_PATTERNS)
        username_col = self._find_column(df.columns, USERNAME_PATTERNS)
        rating_col = self._find_column(df.columns, RATING_PATTERNS)
        text_col = self._find_column(df.columns, TEXT_PATTERNS)
        time_col = self._find_column(df.columns, TIMESTAMP_PATTERNS)

        # A ProductID column means product reviews, even if a BusinessID column is also present
        subject_col = product_col or business_col
        default_scope = ReviewScope.PRODUCT if product_col else ReviewScope.BUSINESS

        self.detected_columns[name] = {
            'subject': subject_col, 'voter': voter_col, 'rating': rating_col,
            'text': text_col, 'timestamp': time_col, 'scope': scope_col,
        }
        logger.info(f"Detected columns: {self.detected_columns[name]}")

        if not subject_col or not voter_col:
            raise ValueError(f"Could not detect product/business and user columns in sheet '{name}'.")

        result = self._empty_result()
        for i, row in df.iterrows():
            subject_id = _clean(row.get(subject_col))
            voter_id = _clean(row.get(voter_col))

            if not subject_id or not voter_id:
                result['skipped'] += 1
                continue

            try:
                scope = default_scope
                if scope_col and _clean(row.get(scope_col)):
                    scope = ReviewScope(_clean(row.get(scope_col)).lower())
                inserted = self.storage.reviews.upsert(Review(
                    scope=scope,
                    subject_id=subject_id,
                    voter_id=voter_id,
                    rating=parse_rating(_clean(row.get(rating_col))),
                    text=_clean(row.get(text_col)) if text_col else '',
                    timestamp=_timestamp(row.get(time_col)) if time_col else utc_now(),
                    username=_clean(row.get(username_col)) if username_col else voter_id,
                ))
                result['added' if inserted else 'updated'] += 1
            except (HubError, ValueError) as e:
                result['errors'].append(f"Row {i + 2}: {e}")

        return result

    # ── Usernames ──────────────────────────────────────────────────

    def _import_meta(self, name: str, df: pd.DataFrame) -> dict:
        key_col = self._find_column(df.columns, KEY_PATTERNS)
        value_col = self._find_column(df.columns, VALUE_PATTERNS)

        result = self._empty_result()
        for _, row in df.iterrows():
            key = _clean(row.get(key_col))
            value = _clean(row.get(value_col)).lower()

            if not key.startswith(USERNAME_KEY_PREFIX) or value != 'true':
                result['skipped'] += 1
                continue

            username = key[len(USERNAME_KEY_PREFIX):]
            if self.storage.usernames.exists(username):
                result['updated'] += 1
                continue
            self.storage.usernames.add(username)
            result['added'] += 1

        return result


def import_sheet(storage: Storage, file_path: str, sheet_name: Optional[str] = None) -> Dict[str, dict]:
    """
    Convenience function to import a spreadsheet into a store.

    Args:
        storage: Target storage backend
        file_path: Path to the file
        sheet_name: Optional sheet name

    Returns:
        Per-sheet import results
    """
    return SheetImporter(storage).import_file(file_path, sheet_name)
