"""
Sheet Import Runner - Legacy Spreadsheet Migration
===================================================

Imports votes, reviews and usernames from an exported spreadsheet into
the storage backend configured by HUB_STORAGE.

    python import_sheet.py legacy_export.xlsx [SheetName]

Re-running is safe: rows with an existing key are overwritten, not
duplicated.
"""

import sys
import logging

from thehub.domain.errors import StorageError
from thehub.infrastructure.config import get_settings
from thehub.infrastructure import importer
from thehub.infrastructure.persistence import create_storage

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_import(file_path: str, sheet_name: str = None) -> int:
    """Run the import and print a per-sheet report. Returns an exit code."""

    print("\n" + "=" * 60)
    print("   TheHub Reviews - Sheet Import")
    print("=" * 60 + "\n")

    settings = get_settings()
    for issue in settings.validate():
        print(f"   {issue}")

    try:
        storage = create_storage(settings.storage)
        results = importer.import_sheet(storage, file_path, sheet_name)
    except (FileNotFoundError, ValueError, StorageError) as e:
        logger.error(f"Import failed: {e}")
        return 1

    if not results:
        print("   No votes, reviews or usernames found in file.")
        return 1

    had_errors = False
    for name, result in results.items():
        print(f"   {name}: {result['added']} added, {result['updated']} updated, "
              f"{result['skipped']} skipped, {len(result['errors'])} errors")
        for error in result['errors'][:10]:
            print(f"      - {error}")
        had_errors = had_errors or bool(result['errors'])

    print(f"\n   Imported into {storage.name} storage.\n")
    return 2 if had_errors else 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    sys.exit(run_import(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
