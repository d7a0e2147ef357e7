"""
Customers module (dashboard, read-only).

- Customer listing with name/email search and per-customer invoice totals
- Customer choices for the invoice create/edit forms
"""
