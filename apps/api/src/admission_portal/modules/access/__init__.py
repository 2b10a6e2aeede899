"""
Access module - Role and ownership authorization.
"""

from admission_portal.modules.access.policy import AccessPolicy, Action, policy

__all__ = ["AccessPolicy", "Action", "policy"]
