# Supabase table: calendars
# This file documents the expected database schema
# Calendars are opaque containers here; event scheduling lives elsewhere.

"""
Expected Supabase table structure:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null, on delete cascade)
- name: text (not null)
- color: text (nullable) - hex color, e.g. '#007bff'
- is_primary: boolean (not null, default: false)
- timezone: text (nullable)
- created_at: timestamp (default: now())
"""
