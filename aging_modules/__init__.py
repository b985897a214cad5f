"""
Aging Modules.

Thin layers over the aging kernel and engine. Each module contains:
- Domain models (the invoice and its status lifecycle)
- A service turning invoices into aging rows and drill-down lines

Modules:
- Receivables: customer invoices, dunning report
- Payables: supplier invoices, payables aging
- view_state: presentation-side drill-down state (expanded counterparties)

Actual bucketing and aggregation live in aging_engines.
"""
