from .sheet_importer import SheetImporter, import_sheet

__all__ = ["SheetImporter", "import_sheet"]
