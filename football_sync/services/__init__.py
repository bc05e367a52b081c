"""
Services for the football-data sync pipeline.

- football_data: upstream API client and typed records
- sync: natural-key resolution, upserts, per-entity sync jobs and the
  orchestrator that runs them in dependency order
"""
