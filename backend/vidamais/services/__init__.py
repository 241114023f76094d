# Services package init
"""
Vida Mais Backend — Services Layer
==================================

What:  Business logic between the routes (HTTP) and the storage adapter.

Service Inventory:
    - patient_rules:        pure sanitize / validate functions (no I/O)
    - patient_repository:   record store, SQL statements over the Database
    - patient_service:      registration workflow returning ResultEnvelopes
    - order_status_service: text matcher for order enquiries
"""
