"""
Feature entitlements: static registry, database-backed manager, public and admin
endpoints, and the client-side entitlement cache.
"""
