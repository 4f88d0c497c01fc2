"""Initial trading academy schema: tables, indexes, row-level security, views.

WHAT:
    Creates the nine store tables with their CHECK domains, unique keys and
    cascading foreign keys, the lookup indexes, native row-level security
    policies and the three reporting views.
WHY:
    The ORM enforces the same rules for every caller it serves; the database
    enforces them for everything else (SQL consoles, other services).
    Targets PostgreSQL. Tests build the schema with Base.metadata.create_all.

Revision ID: 20250619_000001
Revises:
Create Date: 2025-06-19 09:51:07.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20250619_000001"
down_revision = None
branch_labels = None
depends_on = None


TABLES = (
    "clients",
    "courses",
    "mentorship",
    "bookings",
    "payments",
    "contact_submissions",
    "user_sessions",
    "newsletter_subscribers",
    "trading_performance",
)


def _id():
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _client_fk():
    return sa.Column(
        "client_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    )


def _ts(name, **kwargs):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), **kwargs)


def _one_of(column, values, name):
    quoted = ", ".join(f"'{v}'" for v in values)
    return sa.CheckConstraint(f"{column} IN ({quoted})", name=name)


def upgrade():
    op.create_table(
        "clients",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(150), nullable=False, unique=True),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("package_selected", sa.String(50), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        _ts("registration_date"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        _one_of("payment_status", ("pending", "completed", "failed", "refunded"), "ck_clients_payment_status"),
        _one_of("status", ("active", "inactive", "suspended"), "ck_clients_status"),
    )

    op.create_table(
        "courses",
        _id(),
        sa.Column("course_name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("duration_weeks", sa.Integer(), nullable=True),
        sa.Column("level", sa.String(20), nullable=False),
        sa.Column("features", postgresql.JSONB(), nullable=True),
        sa.Column("outcomes", postgresql.JSONB(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at"),
        _ts("updated_at"),
        _one_of("level", ("beginner", "intermediate", "advanced", "elite"), "ck_courses_level"),
    )

    op.create_table(
        "mentorship",
        _id(),
        sa.Column("program_name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("billing_period", sa.String(20), nullable=False),
        sa.Column("features", postgresql.JSONB(), nullable=True),
        sa.Column("benefits", postgresql.JSONB(), nullable=True),
        sa.Column("max_students", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("current_students", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at"),
        _ts("updated_at"),
        _one_of("billing_period", ("monthly", "quarterly", "annually"), "ck_mentorship_billing_period"),
        sa.CheckConstraint(
            "current_students >= 0 AND current_students <= max_students",
            name="ck_mentorship_capacity",
        ),
    )

    op.create_table(
        "bookings",
        _id(),
        _client_fk(),
        sa.Column("session_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("session_type", sa.String(20), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), server_default="60"),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("meeting_link", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        _one_of(
            "session_type",
            ("consultation", "mentorship", "group_call", "trading_room"),
            "ck_bookings_session_type",
        ),
        _one_of("status", ("scheduled", "completed", "cancelled", "no_show"), "ck_bookings_status"),
    )

    op.create_table(
        "payments",
        _id(),
        _client_fk(),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="GBP"),
        sa.Column("transaction_id", sa.String(100), nullable=True, unique=True),
        sa.Column("stripe_payment_intent_id", sa.String(100), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="stripe"),
        sa.Column("payment_type", sa.String(20), nullable=False),
        # Course, mentorship or booking id depending on payment_type (no FK)
        sa.Column("item_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        _ts("payment_date"),
        sa.Column("refund_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refund_amount", sa.Numeric(10, 2), server_default="0.00"),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at"),
        _one_of("payment_method", ("stripe", "paypal", "bank_transfer"), "ck_payments_method"),
        _one_of("payment_type", ("course", "mentorship", "consultation"), "ck_payments_type"),
        _one_of(
            "payment_status",
            ("pending", "completed", "failed", "refunded", "disputed"),
            "ck_payments_status",
        ),
    )

    op.create_table(
        "contact_submissions",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(150), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("package_interest", sa.String(50), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        _ts("submitted_date"),
        sa.Column("response_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at"),
        _one_of("status", ("new", "contacted", "converted", "closed"), "ck_contact_status"),
    )

    op.create_table(
        "user_sessions",
        _id(),
        _client_fk(),
        sa.Column("session_token", sa.String(255), nullable=False, unique=True),
        sa.Column("ip_address", postgresql.INET(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        _ts("login_time"),
        _ts("last_activity"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at"),
    )

    op.create_table(
        "newsletter_subscribers",
        _id(),
        sa.Column("email", sa.String(150), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=True),
        _ts("subscription_date"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("source", sa.String(50), server_default="website"),
        sa.Column("preferences", postgresql.JSONB(), nullable=True),
        _ts("created_at"),
        _one_of("status", ("active", "unsubscribed", "bounced"), "ck_newsletter_status"),
    )

    op.create_table(
        "trading_performance",
        _id(),
        _client_fk(),
        sa.Column("month_year", sa.Date(), nullable=False),
        sa.Column("total_trades", sa.Integer(), server_default="0"),
        sa.Column("winning_trades", sa.Integer(), server_default="0"),
        sa.Column("losing_trades", sa.Integer(), server_default="0"),
        sa.Column("total_pips", sa.Numeric(10, 2), server_default="0.00"),
        sa.Column("total_profit_loss", sa.Numeric(12, 2), server_default="0.00"),
        sa.Column("win_rate", sa.Numeric(5, 2), server_default="0.00"),
        sa.Column("risk_reward_ratio", sa.Numeric(5, 2), server_default="0.00"),
        sa.Column("max_drawdown", sa.Numeric(5, 2), server_default="0.00"),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("client_id", "month_year", name="uq_trading_performance_client_month"),
    )

    for name, table, columns in (
        ("idx_clients_email", "clients", ["email"]),
        ("idx_clients_package", "clients", ["package_selected"]),
        ("idx_clients_status", "clients", ["status"]),
        ("idx_clients_registration_date", "clients", ["registration_date"]),
        ("idx_courses_level", "courses", ["level"]),
        ("idx_courses_active", "courses", ["is_active"]),
        ("idx_mentorship_billing", "mentorship", ["billing_period"]),
        ("idx_mentorship_active", "mentorship", ["is_active"]),
        ("idx_bookings_client", "bookings", ["client_id"]),
        ("idx_bookings_session_date", "bookings", ["session_date"]),
        ("idx_bookings_status", "bookings", ["status"]),
        ("idx_payments_client", "payments", ["client_id"]),
        ("idx_payments_transaction", "payments", ["transaction_id"]),
        ("idx_payments_status", "payments", ["payment_status"]),
        ("idx_payments_date", "payments", ["payment_date"]),
        ("idx_contact_email", "contact_submissions", ["email"]),
        ("idx_contact_status", "contact_submissions", ["status"]),
        ("idx_contact_submitted_date", "contact_submissions", ["submitted_date"]),
        ("idx_sessions_client", "user_sessions", ["client_id"]),
        ("idx_sessions_token", "user_sessions", ["session_token"]),
        ("idx_sessions_active", "user_sessions", ["is_active"]),
        ("idx_newsletter_email", "newsletter_subscribers", ["email"]),
        ("idx_newsletter_status", "newsletter_subscribers", ["status"]),
        ("idx_performance_client", "trading_performance", ["client_id"]),
        ("idx_performance_month_year", "trading_performance", ["month_year"]),
    ):
        op.create_index(name, table, columns)

    _create_row_level_security()
    _create_views()


def _create_row_level_security():
    # Managed platforms ship the anon/authenticated roles and auth.uid();
    # plain PostgreSQL gets equivalents reading the request JWT subject.
    op.execute(
        """
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = 'anon') THEN
                CREATE ROLE anon NOLOGIN;
            END IF;
            IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = 'authenticated') THEN
                CREATE ROLE authenticated NOLOGIN;
            END IF;
        END$$;
        """
    )
    op.execute(
        """
        DO $$
        BEGIN
            IF NOT EXISTS (
                SELECT 1 FROM pg_proc p JOIN pg_namespace n ON n.oid = p.pronamespace
                WHERE n.nspname = 'auth' AND p.proname = 'uid'
            ) THEN
                CREATE SCHEMA IF NOT EXISTS auth;
                CREATE FUNCTION auth.uid() RETURNS uuid LANGUAGE sql STABLE AS
                    $fn$ SELECT nullif(current_setting('request.jwt.claim.sub', true), '')::uuid $fn$;
            END IF;
        END$$;
        """
    )

    for table in TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")

    policies = (
        ("Users can read own client data", "clients", "SELECT", "authenticated",
         "USING (auth.uid() = id)"),
        ("Users can update own client data", "clients", "UPDATE", "authenticated",
         "USING (auth.uid() = id) WITH CHECK (auth.uid() = id)"),
        ("Anyone can read courses", "courses", "SELECT", "anon, authenticated",
         "USING (is_active = true)"),
        ("Anyone can read mentorship programs", "mentorship", "SELECT", "anon, authenticated",
         "USING (is_active = true)"),
        ("Users can read own bookings", "bookings", "SELECT", "authenticated",
         "USING (auth.uid() = client_id)"),
        # Creation only; reads go through the select policy above
        ("Users can create own bookings", "bookings", "INSERT", "authenticated",
         "WITH CHECK (auth.uid() = client_id)"),
        ("Users can read own payments", "payments", "SELECT", "authenticated",
         "USING (auth.uid() = client_id)"),
        ("Anyone can create contact submissions", "contact_submissions", "INSERT", "anon, authenticated",
         "WITH CHECK (true)"),
        ("Anyone can subscribe to newsletter", "newsletter_subscribers", "INSERT", "anon, authenticated",
         "WITH CHECK (true)"),
        ("Users can read own trading performance", "trading_performance", "SELECT", "authenticated",
         "USING (auth.uid() = client_id)"),
    )
    for name, table, command, roles, predicate in policies:
        op.execute(f'CREATE POLICY "{name}" ON {table} FOR {command} TO {roles} {predicate}')

    op.execute("GRANT SELECT ON courses, mentorship TO anon, authenticated")
    op.execute("GRANT INSERT ON contact_submissions, newsletter_subscribers TO anon, authenticated")
    op.execute("GRANT SELECT, UPDATE ON clients TO authenticated")
    op.execute("GRANT SELECT, INSERT ON bookings TO authenticated")
    op.execute("GRANT SELECT ON payments, trading_performance TO authenticated")


def _create_views():
    # security_invoker makes the views evaluate base-table policies as the caller
    op.execute(
        """
        CREATE VIEW active_clients WITH (security_invoker = true) AS
        SELECT c.id AS client_id, c.name, c.email, c.phone, c.package_selected, c.status,
               p.id AS payment_id, p.payment_status, p.payment_type,
               co.course_name, m.program_name
        FROM clients c
        LEFT JOIN LATERAL (
            SELECT id, payment_status, payment_type, item_id
            FROM payments
            WHERE client_id = c.id AND payment_status = 'completed'
            ORDER BY payment_date DESC NULLS LAST, created_at DESC
            LIMIT 1
        ) p ON true
        LEFT JOIN courses co ON p.item_id = co.id AND p.payment_type = 'course'
        LEFT JOIN mentorship m ON p.item_id = m.id AND p.payment_type = 'mentorship'
        WHERE c.status = 'active'
        """
    )
    op.execute(
        """
        CREATE VIEW monthly_revenue WITH (security_invoker = true) AS
        SELECT
            DATE_TRUNC('month', payment_date AT TIME ZONE 'UTC') AS month,
            COUNT(*) AS total_payments,
            SUM(amount) AS total_revenue,
            ROUND(SUM(amount) / COUNT(*), 2) AS average_payment
        FROM payments
        WHERE payment_status = 'completed'
        GROUP BY DATE_TRUNC('month', payment_date AT TIME ZONE 'UTC')
        ORDER BY month DESC NULLS LAST
        """
    )
    op.execute(
        """
        CREATE VIEW upcoming_sessions WITH (security_invoker = true) AS
        SELECT b.id, b.session_date, b.session_type,
               c.name AS client_name, c.email AS client_email, c.phone AS client_phone,
               b.notes
        FROM bookings b
        JOIN clients c ON b.client_id = c.id
        WHERE b.session_date >= now() AND b.status = 'scheduled'
        ORDER BY b.session_date ASC
        """
    )


def downgrade():
    op.execute("DROP VIEW IF EXISTS upcoming_sessions")
    op.execute("DROP VIEW IF EXISTS monthly_revenue")
    op.execute("DROP VIEW IF EXISTS active_clients")
    # Policies and indexes go with their tables; children before clients
    for table in reversed(TABLES):
        op.drop_table(table)
