# Supabase Auth
# Identity is owned by Supabase's built-in authentication system.
# No custom tables are required here; the profiles table (families module)
# links application data to auth.users through profiles.user_id.

"""
Supabase Auth provides:
- auth.get_user(jwt=...) - Resolve the caller from a bearer access token

Sign-up, sign-in and sign-out happen client-side against Supabase directly.
"""
