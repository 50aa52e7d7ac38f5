"""
Application Layer

FastAPI surface and services built on top of the cache.
"""
