# Supabase tables: users, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - synced from auth.users on first sign-in
- nickname: text (nullable, UNIQUE) - chosen during onboarding
- auth_provider: text (not null, e.g. 'google')
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

    create table users (
        id uuid primary key references auth.users(id) on delete cascade,
        email text not null,
        nickname text unique,
        auth_provider text not null default 'google',
        created_at timestamptz not null default now(),
        updated_at timestamptz
    );

The UNIQUE constraint on nickname is the final arbiter for concurrent
nickname writes; services translate its violation (SQLSTATE 23505) into
a 409 conflict. Multiple NULL nicknames are allowed.
"""
