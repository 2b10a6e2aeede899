"""
Auth module - Registration, login and sessions.
"""
