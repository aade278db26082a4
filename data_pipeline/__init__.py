"""
Data pipelines for the league analytics datastore.
"""
