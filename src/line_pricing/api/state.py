"""Shared API state: the tax table loaded once per process."""
from ..config.settings import get_settings
from ..engine import TaxTable

settings = get_settings()
tax_table = TaxTable(settings.tax_table)
