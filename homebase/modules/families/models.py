# Supabase tables: profiles, families, family_members
# This file documents the expected database schema
# Actual operations are handled through the Store in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null, unique)
- full_name: text (nullable)
- avatar_url: text (nullable)
- created_at: timestamp (default: now())

families:
- id: uuid (primary key)
- name: text (not null)
- plan_tier: text (not null, default: 'free') - values: free, basic, plus, pro, internal
- billing_status: text (nullable)
- billing_customer_id: text (nullable)
- current_period_end: timestamp (nullable)
- created_by: uuid (auth.users.id of the creator, nullable)
- created_at: timestamp (default: now())

family_members:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null, on delete cascade)
- profile_id: uuid (foreign key to profiles.id, not null)
- role: text (not null, default: 'member') - values: owner, member
- is_default: boolean (not null, default: false)
- created_at: timestamp (default: now())
- unique constraint on (family_id, profile_id)
- unique index on (profile_id) where is_default
"""
