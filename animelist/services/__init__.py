"""
Business logic services for the anime list service.

Import pipeline: export_parser -> reconciliation -> import_service, with
tag_classifier as the shared leaf. Enrichment runs separately on demand.
Library services (anime, tags, stats) back the user-facing API.
"""
