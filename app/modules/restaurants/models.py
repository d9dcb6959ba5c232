# Supabase table: restaurants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

restaurants:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (not null, UNIQUE, references users.id) - the owner
- name: text (not null)
- address: text (not null)
- latitude: double precision (not null)
- longitude: double precision (not null)
- description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

    create table restaurants (
        id uuid primary key default gen_random_uuid(),
        user_id uuid not null unique references users(id) on delete cascade,
        name text not null,
        address text not null,
        latitude double precision not null,
        longitude double precision not null,
        description text,
        created_at timestamptz not null default now(),
        updated_at timestamptz
    );
    create index restaurants_lat_lng_idx on restaurants (latitude, longitude);

Each user owns at most one restaurant. The service checks this before
inserting; the UNIQUE constraint on user_id settles concurrent creates.
"""
