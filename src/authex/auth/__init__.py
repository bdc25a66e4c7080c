"""Credential helpers.

Learn: Only password hashing lives here. Sessions and tokens are the host
application's business; the users context just answers "which user, if
any, do these credentials belong to".
"""
