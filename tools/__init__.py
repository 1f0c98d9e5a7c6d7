"""
Elasticsearch operations: dispatch, version probe, client and flows.
"""
