"""Authentication.

Learn: users register with email/password and receive a signed token.
The token travels back either as an httpOnly cookie (browser clients) or
as an `Authorization: Bearer` header (everything else). Both resolve to
a CurrentIdentity, which scopes every event query by owner.
"""
