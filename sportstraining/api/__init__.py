"""
HTTP API for the mobile front end: routes and their dependencies.
"""
