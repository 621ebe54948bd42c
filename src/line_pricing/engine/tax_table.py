"""
Tax Table - Loads named tax definitions and resolves them for line items.

Taxes are read from a CSV table (code, name, kind, value, priority,
affect_tax, active) so callers can price an item from tax codes alone.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .contracts import Tax
from .errors import TaxTableError, UnknownTaxError, ValidationError
from .models import parse_bool, tax_from_record, tax_to_record

logger = logging.getLogger(__name__)


class TaxTable:
    """
    Registry of the taxes that can be applied to items.

    Only rows flagged active are kept. Codes are unique; a duplicated code
    keeps the last row.
    """

    def __init__(self, tax_table_path: Optional[Path] = None):
        """Load the tax table if the file exists."""
        self.path = tax_table_path
        self.taxes: dict[str, Tax] = {}
        self.loaded = False

        if tax_table_path and tax_table_path.exists():
            self._load_taxes(tax_table_path)
        elif tax_table_path:
            logger.warning("Tax table not found at %s, no taxes loaded", tax_table_path)

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> 'TaxTable':
        """Build a table from in-memory rows (same keys as the CSV columns)."""
        table = cls()
        table._add_records(records)
        table.loaded = True
        return table

    def _load_taxes(self, path: Path):
        """Load taxes from CSV file."""
        df = pd.read_csv(path, dtype=str).fillna('')
        df.columns = [c.strip() for c in df.columns]
        for col in df.columns:
            df[col] = df[col].astype(str).str.strip()

        missing = [c for c in ('code', 'value') if c not in df.columns]
        if missing:
            raise TaxTableError(f"Tax table {path} is missing column(s): {', '.join(missing)}")

        self._add_records(df.to_dict(orient='records'))
        self.loaded = True
        logger.info("Loaded %d taxes from %s", len(self.taxes), path)

    def _add_records(self, records: Iterable[dict]):
        for index, row in enumerate(records, start=1):
            if not parse_bool(row.get('active'), default=True):
                continue
            try:
                tax = tax_from_record(row)
            except ValidationError as e:
                raise TaxTableError(f"Invalid tax table row {index}: {e}") from e
            if tax.code in self.taxes:
                logger.warning("Duplicate tax code %s in tax table, keeping row %d", tax.code, index)
            self.taxes[tax.code] = tax

    @property
    def codes(self) -> list[str]:
        return list(self.taxes)

    def get(self, code: str) -> Optional[Tax]:
        """Get a single tax by code."""
        return self.taxes.get(str(code).strip())

    def resolve(self, codes: Iterable[str]) -> list[Tax]:
        """
        Get the taxes for the given codes, in the given order.

        Raises UnknownTaxError listing every code that is not in the table.
        """
        codes = [str(c).strip() for c in codes]
        missing = [c for c in codes if c not in self.taxes]
        if missing:
            raise UnknownTaxError(missing)
        return [self.taxes[c] for c in codes]

    def to_frame(self) -> pd.DataFrame:
        """Tax table as a DataFrame, one row per tax."""
        rows = [tax_to_record(t) for t in self.taxes.values()]
        return pd.DataFrame(rows, columns=['code', 'name', 'kind', 'value', 'priority', 'affect_tax'])

    def stats(self) -> dict:
        """Get statistics about the loaded taxes."""
        by_kind = {}
        for record in (tax_to_record(t) for t in self.taxes.values()):
            by_kind[record['kind']] = by_kind.get(record['kind'], 0) + 1

        return {
            'total': len(self.taxes),
            'compounding': sum(1 for t in self.taxes.values() if t.affect_tax),
            'by_kind': by_kind,
            'loaded': self.loaded,
        }
