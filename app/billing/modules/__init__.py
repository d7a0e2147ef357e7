"""
Feature modules live under this package.

Each module owns its routes/models/service, while reusing platform primitives
(auth gate, validation, listing cache, DB session).
"""
