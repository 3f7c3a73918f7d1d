"""Reference schema for the Supabase project.

Migrations are applied through Supabase; this module documents the tables the
repositories rely on and the uniqueness constraints the engine expects the
store to report as SQLSTATE 23505.
"""

SCHEMA = """
CREATE TABLE IF NOT EXISTS customers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    phone_number TEXT UNIQUE NOT NULL,
    nickname TEXT,
    current_stamps INTEGER DEFAULT 0 CHECK (current_stamps >= 0 AND current_stamps <= 10),
    total_stamps INTEGER DEFAULT 0 CHECK (total_stamps >= 0),
    visit_count INTEGER DEFAULT 0 CHECK (visit_count >= 0),
    coupons INTEGER DEFAULT 0 CHECK (coupons >= 0),
    created_at TIMESTAMPTZ DEFAULT now(),
    updated_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS visit_history (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    customer_id UUID NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
    visit_date TIMESTAMPTZ NOT NULL DEFAULT now(),
    selected_card TEXT,
    card_review TEXT CHECK (char_length(card_review) <= 100),
    stamps_earned INTEGER
);

CREATE INDEX IF NOT EXISTS idx_visit_customer ON visit_history(customer_id, visit_date DESC);

CREATE TABLE IF NOT EXISTS coupon_history (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    customer_id UUID NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
    coupon_code TEXT NOT NULL,
    issued_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    valid_until TIMESTAMPTZ
);

CREATE INDEX IF NOT EXISTS idx_coupon_customer ON coupon_history(customer_id, issued_at DESC);

CREATE TABLE IF NOT EXISTS votes (
    id BIGSERIAL PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    options JSONB NOT NULL DEFAULT '[]',
    allow_multiple BOOLEAN DEFAULT FALSE,
    max_selections INTEGER DEFAULT 1 CHECK (max_selections >= 1),
    is_anonymous BOOLEAN DEFAULT TRUE,
    end_date TIMESTAMPTZ,
    is_active BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS vote_responses (
    id BIGSERIAL PRIMARY KEY,
    vote_id BIGINT NOT NULL REFERENCES votes(id) ON DELETE CASCADE,
    customer_id UUID NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
    selected_options JSONB NOT NULL DEFAULT '[]',
    voted_at TIMESTAMPTZ DEFAULT now(),
    UNIQUE(vote_id, customer_id)
);

CREATE TABLE IF NOT EXISTS notices (
    id BIGSERIAL PRIMARY KEY,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    is_pinned BOOLEAN DEFAULT FALSE,
    is_published BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS notice_reads (
    id BIGSERIAL PRIMARY KEY,
    customer_id UUID NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
    notice_id BIGINT NOT NULL REFERENCES notices(id) ON DELETE CASCADE,
    read_at TIMESTAMPTZ DEFAULT now(),
    UNIQUE(customer_id, notice_id)
);

CREATE TABLE IF NOT EXISTS bug_reports (
    id BIGSERIAL PRIMARY KEY,
    customer_id UUID REFERENCES customers(id) ON DELETE SET NULL,
    customer_phone TEXT,
    customer_nickname TEXT,
    category TEXT NOT NULL CHECK (category IN ('app', 'store')),
    report_type TEXT,
    title TEXT NOT NULL,
    description TEXT NOT NULL CHECK (char_length(description) <= 500),
    -- rows migrated from older clients may still hold 'pending'; read as 'received'
    status TEXT NOT NULL DEFAULT 'received'
        CHECK (status IN ('received', 'in_progress', 'resolved', 'held', 'pending')),
    admin_response TEXT,
    response_read BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_bug_reports_customer ON bug_reports(customer_id, created_at DESC);
"""

# Column sets the store rejects duplicates on (besides primary keys).
UNIQUE_KEYS = {
    "customers": [("phone_number",)],
    "vote_responses": [("vote_id", "customer_id")],
    "notice_reads": [("customer_id", "notice_id")],
}

TABLES = (
    "customers",
    "visit_history",
    "coupon_history",
    "votes",
    "vote_responses",
    "notices",
    "notice_reads",
    "bug_reports",
)
