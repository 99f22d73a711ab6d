# Supabase tables: team_members (the per-team "members" sub-collection), user_profiles
# This file documents the expected database schema
# Actual operations are handled via the persistence gateway in service.py

"""
Expected Supabase table structure:

team_members:
- id: uuid (primary key)
- team_id: uuid (foreign key to teams.id, not null, on delete cascade)
- user_id: uuid (foreign key to auth.users.id, not null)
- role_id: uuid (foreign key to team_roles.id, not null)
- added_by: uuid (nullable) - user who created the membership
- added_at: timestamp (not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

One row per (team_id, user_id) is expected but not enforced by the store;
MembershipLedger queries before it writes.

user_profiles (read only here, owned by the identity provider):
- id: uuid (primary key, same as auth.users.id)
- email: text
- full_name: text (nullable)
"""
