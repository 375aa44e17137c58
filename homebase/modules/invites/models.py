# Supabase table: family_invites
# This file documents the expected database schema
# Actual operations are handled through the Store in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null, on delete cascade)
- email: text (not null)
- role: text (not null, default: 'member') - values: owner, member
- token: text (not null, unique) - url-safe random token, generated by the service
- created_by_profile_id: uuid (foreign key to profiles.id, nullable)
- created_at: timestamp (default: now())
- accepted_at: timestamp (nullable) - set once, by conditional update, when the token is consumed
"""
