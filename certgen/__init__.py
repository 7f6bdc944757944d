"""Certificate PDF generation from Airtable rows, with a polling orchestrator."""

__version__ = "1.0.0"
