# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - OAuth sign-in with the configured provider (Google)
# - PKCE code exchange and session issuance (the verifier travels in a short-lived cookie)
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_in_with_oauth() - Build the provider authorize URL
- auth.exchange_code_for_session() - Turn the callback code into a session
- auth.get_user() - Get current user from JWT token
- auth.admin.sign_out(jwt, "local") - Revoke the session a token belongs to

Identity lives in auth.users; the application profile (nickname) lives in
the public users table documented in app/modules/users/models.py and is
created by the OAuth callback on first sign-in.
"""
