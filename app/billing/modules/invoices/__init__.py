"""
Invoices module.

- Invoice listing with search + pagination (cached per path, revalidated on mutation)
- Create / edit / delete mutations (validate -> persist -> revalidate -> redirect)
"""
