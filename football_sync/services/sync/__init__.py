"""
Data sync layer for football-data.org.

- resolver: natural-key (external id) to internal id lookups
- upsert: insert-or-update keyed by external id
- jobs: Competition, Team and Match Sync
- orchestrator: ordered pipeline, secret gate and health status
"""
