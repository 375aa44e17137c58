# Supabase tables: todo_lists, todo_items
# This file documents the expected database schema
# Actual operations are handled through the Store in service.py

"""
Expected Supabase table structure:

todo_lists:
- id: uuid (primary key)
- family_id: uuid (foreign key to families.id, not null, on delete cascade)
- name: text (not null)
- type: text (not null, default: 'todo') - values: todo, shopping
- sort_order: integer (nullable)
- created_at: timestamp (default: now())

todo_items:
- id: uuid (primary key)
- list_id: uuid (foreign key to todo_lists.id, not null, on delete cascade)
- title: text (not null)
- notes: text (nullable)
- is_done: boolean (not null, default: false) - terminal once true
- due_at: timestamp with time zone (nullable)
- assigned_to_profile_id: uuid (foreign key to profiles.id, nullable) - null means everyone
- created_by: uuid (foreign key to profiles.id, nullable)
- created_at: timestamp (default: now())
- completed_at: timestamp (nullable)
- recurrence: text (nullable, treated as 'once') - values: once, daily, weekly, every_n_days
- recurrence_interval_days: integer (nullable) - only meaningful for every_n_days
"""
