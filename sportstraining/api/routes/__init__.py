"""
Route modules, one per screen or concern.
"""
