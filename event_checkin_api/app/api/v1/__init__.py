"""
Version 1 of the check-in API.
"""
