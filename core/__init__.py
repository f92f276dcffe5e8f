"""Core (UI-agnostic) construction budget logic.

This package contains:
- options and red flag thresholds
- budget table helpers (CSV text -> pandas, lenient amounts, formatting)
- column detection for budget exports
- aggregation by division / cost type and top line items
- red flag findings and summary recommendations
- the page compute function (JSON-serializable payload)
"""
