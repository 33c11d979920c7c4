"""
registry — Community safety-alert state machine.

Sub-modules:
    models       — Alert / User / Neighborhood records and enums
    store        — Keyed storage owned by one Registry
    permissions  — Pure capability predicates
    events       — Append-only notification log
    service      — The Registry: every mutation and query
"""
