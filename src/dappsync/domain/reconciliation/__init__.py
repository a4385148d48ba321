"""Reconciliation core turning three upstream record sets into one record per dapp.

Layered flow:
1) normalize names into comparison keys
2) resolve chain names against the curated reference table
3) collapse duplicate store records and pick one canonical survivor
4) fuse store, directory and analytics fields into unified metadata
5) serialize the unified metadata under a byte budget
"""
