"""Workbook file output.

Serializes a :class:`SpreadsheetDocument` into an ``.xlsx`` file with
openpyxl. Layout decisions are made by the document builder; this module
only writes cells and column widths.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from .document import Sheet, SpreadsheetDocument

logger = logging.getLogger(__name__)


class WorkbookWriter:
    """Writes export documents below a single output directory.

    :param output_dir: Directory for written workbooks (default: ./exports)
    :type output_dir: Path | str | None
    """

    def __init__(self, output_dir: Optional[Union[Path, str]] = None):
        self.output_dir = Path(output_dir) if output_dir else Path.cwd() / "exports"
        logger.debug(f"Workbook writer using output directory: {self.output_dir}")

    @staticmethod
    def _clean(value):
        # Control characters from upstream names are not valid in xlsx cells
        if isinstance(value, str):
            return ILLEGAL_CHARACTERS_RE.sub("", value)
        return value

    @classmethod
    def _fill_sheet(cls, worksheet, sheet: Sheet) -> None:
        for row in sheet.rows:
            worksheet.append([cls._clean(value) for value in row])
        for index, width in enumerate(sheet.column_widths, start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = width

    def to_workbook(self, document: SpreadsheetDocument) -> Workbook:
        """Build an in-memory workbook with one worksheet per sheet, in order."""
        workbook = Workbook()
        workbook.remove(workbook.active)
        for sheet in document.sheets:
            self._fill_sheet(workbook.create_sheet(title=sheet.name), sheet)
        return workbook

    def write(self, document: SpreadsheetDocument, filename: str) -> Path:
        """Save ``document`` as ``filename`` in the output directory.

        :param document: Document to serialize
        :type document: SpreadsheetDocument
        :param filename: File name, without directory
        :type filename: str
        :return: Path of the written file
        :rtype: Path
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        self.to_workbook(document).save(path)
        logger.info(f"Wrote export workbook: {path}")
        return path
