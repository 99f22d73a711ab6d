# Supabase table: teams
# This file documents the expected database schema
# Actual operations are handled via the persistence gateway in service.py

"""
Expected Supabase table structure:

teams:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- owner_id: uuid (not null) - creator; may stop resolving to a member if the owner leaves
- is_active: boolean (not null, default true) - false after a soft delete
- members: uuid[] (not null, default '{}') - denormalized member ids, no duplicates
- member_count: integer (not null, default 0) - equals cardinality(members) after each mutation
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Row-level security on team_roles and team_members is expected to allow writes
only to users whose id appears in teams.members, which is why join_team
appends the user to members before touching roles.
"""
