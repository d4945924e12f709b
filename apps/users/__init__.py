"""Users app package.

Accounts live in the hosted auth service. This app wraps its endpoints
(sign in, sign up, sign out, user lookup), mirrors `user_profiles` rows,
keeps the per-client AuthSession and authenticates API requests by their
bearer token.
"""
