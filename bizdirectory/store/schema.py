"""
Supabase schema for the directory collections.

The SQL below is what the Supabase backend expects. Run it once in the
Supabase SQL Editor (see scripts/setup_supabase.py).

GENERATED_FIELDS mirrors the generated columns so that MemoryRecordStore
derives the same values the database does. REVIEW_RATINGS names the columns
the apply_rollup and recompute_rollup functions operate on.
"""

from typing import Any, Callable

from bizdirectory.store.base import Collections, Rollup


def business_rating(document: dict[str, Any]) -> float:
    """Average rating derived from the accumulated totals (0 without reviews)."""
    total = document.get("total_reviews") or 0
    if total <= 0:
        return 0.0
    return float(document.get("rating_sum") or 0) / total


GENERATED_FIELDS: dict[str, dict[str, Callable[[dict[str, Any]], Any]]] = {
    Collections.BUSINESSES: {"rating": business_rating},
}

REVIEW_RATINGS = Rollup(
    parent=Collections.BUSINESSES,
    child=Collections.REVIEWS,
    foreign_key="business_id",
    value_field="rating",
    sum_field="rating_sum",
    count_field="total_reviews",
    flag_field="rolled_up",
)


SCHEMA_SQL = """
-- =============================================================================
-- bizdirectory Database Schema for Supabase
-- =============================================================================

CREATE EXTENSION IF NOT EXISTS "pgcrypto";

-- =============================================================================
-- Table: businesses
-- =============================================================================
-- rating is derived from rating_sum / total_reviews and cannot be written.
-- =============================================================================

CREATE TABLE IF NOT EXISTS businesses (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT DEFAULT '',
    category TEXT NOT NULL,
    city TEXT NOT NULL,
    address TEXT,
    phone TEXT,
    email TEXT,
    website TEXT,
    logo_url TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    verified BOOLEAN NOT NULL DEFAULT false,
    rating_sum DOUBLE PRECISION NOT NULL DEFAULT 0,
    total_reviews INTEGER NOT NULL DEFAULT 0,
    rating DOUBLE PRECISION GENERATED ALWAYS AS (
        CASE WHEN total_reviews > 0 THEN rating_sum / total_reviews ELSE 0 END
    ) STORED,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_businesses_user_id ON businesses(user_id);
CREATE INDEX IF NOT EXISTS idx_businesses_listing
    ON businesses(category, city, verified, rating DESC, created_at DESC);

-- =============================================================================
-- Table: businessLocations
-- =============================================================================

CREATE TABLE IF NOT EXISTS "businessLocations" (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    business_id UUID NOT NULL,
    name TEXT,
    address TEXT NOT NULL,
    city TEXT,
    state TEXT,
    postal_code TEXT,
    country TEXT,
    latitude DOUBLE PRECISION,
    longitude DOUBLE PRECISION,
    phone TEXT,
    opening_hours JSONB DEFAULT '{}',
    is_primary BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_locations_business
    ON "businessLocations"(business_id, is_primary DESC, created_at ASC);

-- =============================================================================
-- Table: products
-- =============================================================================

CREATE TABLE IF NOT EXISTS products (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    business_id UUID NOT NULL,
    name TEXT NOT NULL,
    description TEXT DEFAULT '',
    kind TEXT NOT NULL CHECK (kind IN ('product', 'service')),
    category TEXT,
    price DOUBLE PRECISION,
    currency TEXT,
    image_url TEXT,
    featured BOOLEAN NOT NULL DEFAULT false,
    available BOOLEAN NOT NULL DEFAULT true,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_products_business
    ON products(business_id, featured DESC, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_products_listing
    ON products(category, kind, available, featured DESC, created_at DESC);

-- =============================================================================
-- Table: businessReviews
-- =============================================================================

CREATE TABLE IF NOT EXISTS "businessReviews" (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    business_id UUID NOT NULL,
    user_id TEXT NOT NULL,
    user_name TEXT NOT NULL,
    rating DOUBLE PRECISION NOT NULL,
    comment TEXT DEFAULT '',
    response TEXT,
    response_at TIMESTAMPTZ,
    rolled_up BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_reviews_business
    ON "businessReviews"(business_id, created_at DESC);

-- =============================================================================
-- Function: rollup_assignments
-- =============================================================================
-- Renders assignments as ", col = value" SET clauses, casting each value to
-- the column type of target_table.
-- =============================================================================

CREATE OR REPLACE FUNCTION rollup_assignments(
    target_table TEXT,
    assignments JSONB
) RETURNS TEXT AS $$
DECLARE
    clauses TEXT := '';
    field_name TEXT;
BEGIN
    FOR field_name IN SELECT jsonb_object_keys(COALESCE(assignments, '{}'::jsonb)) LOOP
        clauses := clauses || format(
            ', %I = (jsonb_populate_record(NULL::%I, %L::jsonb)).%I',
            field_name, target_table, assignments, field_name
        );
    END LOOP;
    RETURN clauses;
END;
$$ LANGUAGE plpgsql STABLE;

-- =============================================================================
-- Function: apply_rollup
-- =============================================================================
-- Adds one child row to its parent's sum and count, at most once per child.
-- The parent row lock serializes it with recompute_rollup.
-- Returns false when the child was already counted.
-- =============================================================================

CREATE OR REPLACE FUNCTION apply_rollup(
    parent_table TEXT,
    child_table TEXT,
    foreign_key TEXT,
    value_field TEXT,
    sum_field TEXT,
    count_field TEXT,
    flag_field TEXT,
    child_id UUID,
    assignments JSONB DEFAULT '{}'::jsonb
) RETURNS BOOLEAN AS $$
DECLARE
    owner_id UUID;
    child_value DOUBLE PRECISION;
    affected INTEGER;
BEGIN
    EXECUTE format('SELECT %I FROM %I WHERE id = $1', foreign_key, child_table)
        INTO owner_id USING child_id;
    GET DIAGNOSTICS affected = ROW_COUNT;
    IF affected = 0 THEN
        RAISE EXCEPTION 'document % not found in %', child_id, child_table
            USING ERRCODE = 'P0002';
    END IF;

    EXECUTE format('SELECT 1 FROM %I WHERE id = $1 FOR UPDATE', parent_table)
        USING owner_id;
    GET DIAGNOSTICS affected = ROW_COUNT;
    IF affected = 0 THEN
        RAISE EXCEPTION 'document % not found in %', owner_id, parent_table
            USING ERRCODE = 'P0002';
    END IF;

    EXECUTE format(
        'UPDATE %I SET %I = true WHERE id = $1 AND NOT %I RETURNING %I::double precision',
        child_table, flag_field, flag_field, value_field
    ) INTO child_value USING child_id;
    GET DIAGNOSTICS affected = ROW_COUNT;
    IF affected = 0 THEN
        RETURN false;
    END IF;

    EXECUTE format(
        'UPDATE %I SET %I = %I + $1, %I = %I + 1%s WHERE id = $2',
        parent_table, sum_field, sum_field, count_field, count_field,
        rollup_assignments(parent_table, assignments)
    ) USING child_value, owner_id;
    RETURN true;
END;
$$ LANGUAGE plpgsql;

-- =============================================================================
-- Function: recompute_rollup
-- =============================================================================
-- Flags every child of the parent as counted and rewrites the parent's sum
-- and count from the flagged children, under the parent row lock. Children
-- inserted after the flag update stay unflagged and are left to their own
-- apply_rollup call.
-- =============================================================================

CREATE OR REPLACE FUNCTION recompute_rollup(
    parent_table TEXT,
    child_table TEXT,
    foreign_key TEXT,
    value_field TEXT,
    sum_field TEXT,
    count_field TEXT,
    flag_field TEXT,
    parent_id UUID,
    assignments JSONB DEFAULT '{}'::jsonb
) RETURNS TABLE (value_sum DOUBLE PRECISION, value_count INTEGER) AS $$
DECLARE
    affected INTEGER;
BEGIN
    EXECUTE format('SELECT 1 FROM %I WHERE id = $1 FOR UPDATE', parent_table)
        USING parent_id;
    GET DIAGNOSTICS affected = ROW_COUNT;
    IF affected = 0 THEN
        RAISE EXCEPTION 'document % not found in %', parent_id, parent_table
            USING ERRCODE = 'P0002';
    END IF;

    EXECUTE format(
        'UPDATE %I SET %I = true WHERE %I = $1 AND NOT %I',
        child_table, flag_field, foreign_key, flag_field
    ) USING parent_id;

    EXECUTE format(
        'SELECT COALESCE(SUM(%I), 0)::double precision, COUNT(*)::integer '
        'FROM %I WHERE %I = $1 AND %I',
        value_field, child_table, foreign_key, flag_field
    ) INTO value_sum, value_count USING parent_id;

    EXECUTE format(
        'UPDATE %I SET %I = $1, %I = $2%s WHERE id = $3',
        parent_table, sum_field, count_field,
        rollup_assignments(parent_table, assignments)
    ) USING value_sum, value_count, parent_id;

    RETURN NEXT;
END;
$$ LANGUAGE plpgsql;
"""


DROP_SQL = """
-- =============================================================================
-- bizdirectory - DROP ALL (use with caution!)
-- =============================================================================

DROP FUNCTION IF EXISTS apply_rollup(TEXT, TEXT, TEXT, TEXT, TEXT, TEXT, TEXT, UUID, JSONB);
DROP FUNCTION IF EXISTS recompute_rollup(TEXT, TEXT, TEXT, TEXT, TEXT, TEXT, TEXT, UUID, JSONB);
DROP FUNCTION IF EXISTS rollup_assignments(TEXT, JSONB);
DROP TABLE IF EXISTS "businessReviews" CASCADE;
DROP TABLE IF EXISTS products CASCADE;
DROP TABLE IF EXISTS "businessLocations" CASCADE;
DROP TABLE IF EXISTS businesses CASCADE;
"""
