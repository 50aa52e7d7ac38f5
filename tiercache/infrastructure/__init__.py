"""
Infrastructure Layer

Storage adapters for the cache tiers.
"""
