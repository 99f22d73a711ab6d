# Supabase table: team_roles (the per-team "roles" sub-collection)
# This file documents the expected database schema
# Actual operations are handled via the persistence gateway in service.py

"""
Expected Supabase table structure:

team_roles:
- id: uuid (primary key)
- team_id: uuid (foreign key to teams.id, not null, on delete cascade)
- name: text (not null) - "Owner", "Member" or a custom name
- permissions: text[] (not null, default '{}') - tokens from permissions_config.Permission
- is_custom: boolean (not null, default false)
- is_default: boolean (not null, default false) - system roles Owner and Member
- color: text (nullable) - hex color for custom roles, e.g. "#3B82F6"
- is_deleted: boolean (not null, default false) - set when a duplicate default role is retired
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

No unique constraint on (team_id, name, is_default): duplicates can appear
through concurrent or partially failed bootstraps and are repaired by
RoleCatalog.bootstrap_default_roles.
"""
