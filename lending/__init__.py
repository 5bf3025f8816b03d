"""Lending Engine - Core Application Package

This package contains the core lending modules including:
- Calendar policies (calendar_policy.py)
- Due date arithmetic (scheduler.py)
- Stock reservation (stock.py)
- Loan ledger (ledger.py)
- Library facade (library.py)
- Record store and database layer (store.py, database.py)
"""
