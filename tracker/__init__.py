"""
Tracker package: run data models, the search API client and snapshot storage.
"""
