"""
Supply Ledger - Source Package

Financial-derivation engine for a building-material supplier:
challan numbering, monthly GST invoices and client ledger imports.

DESIGN PRINCIPLES:
1. Money math is deterministic and testable in isolation
2. Fail early, fail visibly
3. No silent corrections (degraded values are reported, not hidden)
4. Every step must be auditable
5. Storage and rendering are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "Supply Ledger Team"
