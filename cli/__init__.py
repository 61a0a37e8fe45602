"""
Reorder CLI - Audit order reconciliation

Commands:
- reorder run - Reconcile candidate entities and commit corrections
- reorder candidates - List entities whose history needs reconciliation
- reorder inspect - Show one entity's revisions and planned corrections
"""

__version__ = "0.1.0"
