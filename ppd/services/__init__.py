"""
High-level use cases for the PPD+ backend.

Each service module orchestrates a RecordStore to implement business rules
(register member, request/approve credit, confirm payment, etc.). Routers
and scripts call these services instead of manipulating records directly.
"""
