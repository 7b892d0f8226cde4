"""
Snapshot service for store-listing screenshot automation.
"""
