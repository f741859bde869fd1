"""Authentication.

Learn: Staff log in with username/password and receive a signed JWT in an
HTTP-only cookie. Protected routes resolve that cookie into a
StaffIdentity through the get_current_staff dependency. There is no
server-side session table, so a token is valid until it expires.
"""
