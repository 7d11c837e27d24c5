"""
Permission management feature module.

Resolves the effective permissions of a user from directly assigned roles and
roles inherited through group membership, and caches the result per user.
"""
