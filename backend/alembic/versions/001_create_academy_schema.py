"""Create academy schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Tables for site content, visitor submissions and accounts; the
       `app_role` enum and `has_role()` check; row-level security; the
       profile trigger on sign-up; and the three public image buckets.

Access rules installed here:
    coaches, events, gallery_*   read: anyone        write: admins
    students, messages           insert: anyone      read/update/delete: admins
    profiles                     own row, or admins
    user_roles                   read own rows, or admins; write: admins

Rollback: downgrade() drops everything above except stored objects in the
buckets (the buckets are removed only when empty).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONTENT_TABLES = ("coaches", "events", "gallery_photos", "gallery_videos")
SUBMISSION_TABLES = ("students", "messages")
UPDATED_AT_TABLES = ("coaches", "events", "students", "profiles")
BUCKETS = ("coaches", "events", "gallery")

app_role = postgresql.ENUM("admin", "user", name="app_role", create_type=False)


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    app_role.create(op.get_bind(), checkfirst=True)

    # ── Content ───────────────────────────────────────────────────────────
    op.create_table(
        "coaches",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("rank", sa.Text(), nullable=False),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("specialization", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("achievements", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("students", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_coaches"),
    )

    op.create_table(
        "events",
        _id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("registration_link", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("is_past", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_events"),
        sa.CheckConstraint(
            "type IN ('competition', 'seminar', 'workshop', 'exam')",
            name="ck_events_type",
        ),
    )
    op.create_index("ix_events_date", "events", ["date"])

    for table in ("gallery_photos", "gallery_videos"):
        op.create_table(
            table,
            _id(),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("url", sa.Text(), nullable=False),
            sa.Column("category", sa.String(20), nullable=False),
            _timestamp("created_at"),
            sa.PrimaryKeyConstraint("id", name=f"pk_{table}"),
            sa.CheckConstraint(
                "category IN ('training', 'competition', 'seminar', 'graduation', 'events')",
                name=f"ck_{table}_category",
            ),
        )

    # ── Visitor submissions ───────────────────────────────────────────────
    op.create_table(
        "students",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("class", sa.String(20), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
        sa.CheckConstraint("\"class\" IN ('kids', 'adults', 'private')", name="ck_students_class"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_students_status"),
        sa.CheckConstraint("age > 0", name="ck_students_age_positive"),
    )
    op.create_index("ix_students_status", "students", ["status"])

    op.create_table(
        "messages",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("subject", sa.Text(), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_messages"),
    )
    op.create_index("ix_messages_is_read", "messages", ["is_read"])

    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "profiles",
        _id(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["auth.users.id"], name="fk_profiles_user_id_users", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "user_roles",
        _id(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", app_role, nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_user_roles"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_id_role"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["auth.users.id"], name="fk_user_roles_user_id_users", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    # ── Functions & triggers ──────────────────────────────────────────────
    # SECURITY DEFINER so policies on user_roles can call it without recursing.
    op.execute(
        """
        CREATE OR REPLACE FUNCTION public.has_role(_user_id uuid, _role app_role)
        RETURNS boolean
        LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM public.user_roles WHERE user_id = _user_id AND role = _role
            )
        $$;
        """
    )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION public.set_updated_at()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$;
        """
    )
    for table in UPDATED_AT_TABLES:
        op.execute(
            f"CREATE TRIGGER set_{table}_updated_at BEFORE UPDATE ON public.{table} "
            "FOR EACH ROW EXECUTE FUNCTION public.set_updated_at();"
        )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION public.handle_new_user()
        RETURNS trigger
        LANGUAGE plpgsql SECURITY DEFINER SET search_path = public
        AS $$
        BEGIN
            INSERT INTO public.profiles (user_id, email, full_name)
            VALUES (NEW.id, NEW.email, NEW.raw_user_meta_data ->> 'full_name');
            RETURN NEW;
        END;
        $$;
        """
    )
    op.execute(
        "CREATE TRIGGER on_auth_user_created AFTER INSERT ON auth.users "
        "FOR EACH ROW EXECUTE FUNCTION public.handle_new_user();"
    )

    # ── Row-level security ────────────────────────────────────────────────
    is_admin = "public.has_role(auth.uid(), 'admin')"

    for table in CONTENT_TABLES + SUBMISSION_TABLES + ("profiles", "user_roles"):
        op.execute(f"ALTER TABLE public.{table} ENABLE ROW LEVEL SECURITY;")

    for table in CONTENT_TABLES:
        op.execute(f'CREATE POLICY "{table} are public" ON public.{table} FOR SELECT USING (true);')
        op.execute(
            f'CREATE POLICY "admins manage {table}" ON public.{table} FOR ALL '
            f"USING ({is_admin}) WITH CHECK ({is_admin});"
        )

    for table in SUBMISSION_TABLES:
        op.execute(f'CREATE POLICY "anyone submits {table}" ON public.{table} FOR INSERT WITH CHECK (true);')
        op.execute(
            f'CREATE POLICY "admins manage {table}" ON public.{table} FOR ALL '
            f"USING ({is_admin}) WITH CHECK ({is_admin});"
        )

    op.execute(
        'CREATE POLICY "users read own profile" ON public.profiles FOR SELECT '
        f"USING (auth.uid() = user_id OR {is_admin});"
    )
    op.execute(
        'CREATE POLICY "users update own profile" ON public.profiles FOR UPDATE '
        "USING (auth.uid() = user_id) WITH CHECK (auth.uid() = user_id);"
    )
    op.execute(
        'CREATE POLICY "users read own roles" ON public.user_roles FOR SELECT '
        f"USING (auth.uid() = user_id OR {is_admin});"
    )
    op.execute(
        'CREATE POLICY "admins manage roles" ON public.user_roles FOR ALL '
        f"USING ({is_admin}) WITH CHECK ({is_admin});"
    )

    # ── Storage ───────────────────────────────────────────────────────────
    for bucket in BUCKETS:
        op.execute(
            "INSERT INTO storage.buckets (id, name, public) "
            f"VALUES ('{bucket}', '{bucket}', true) ON CONFLICT (id) DO NOTHING;"
        )
    bucket_list = ", ".join(f"'{b}'" for b in BUCKETS)
    op.execute(
        'CREATE POLICY "academy images are public" ON storage.objects FOR SELECT '
        f"USING (bucket_id IN ({bucket_list}));"
    )
    for action, clause in (
        ("INSERT", f"WITH CHECK (bucket_id IN ({bucket_list}) AND {is_admin})"),
        ("UPDATE", f"USING (bucket_id IN ({bucket_list}) AND {is_admin})"),
        ("DELETE", f"USING (bucket_id IN ({bucket_list}) AND {is_admin})"),
    ):
        op.execute(f'CREATE POLICY "admins {action.lower()} academy images" ON storage.objects FOR {action} {clause};')


def downgrade() -> None:
    for action in ("insert", "update", "delete"):
        op.execute(f'DROP POLICY IF EXISTS "admins {action} academy images" ON storage.objects;')
    op.execute('DROP POLICY IF EXISTS "academy images are public" ON storage.objects;')
    for bucket in BUCKETS:
        op.execute(
            f"DELETE FROM storage.buckets WHERE id = '{bucket}' "
            f"AND NOT EXISTS (SELECT 1 FROM storage.objects WHERE bucket_id = '{bucket}');"
        )

    op.execute("DROP TRIGGER IF EXISTS on_auth_user_created ON auth.users;")
    op.execute("DROP FUNCTION IF EXISTS public.handle_new_user();")

    for table in ("user_roles", "profiles", "messages", "students", "gallery_videos", "gallery_photos", "events", "coaches"):
        op.drop_table(table)

    op.execute("DROP FUNCTION IF EXISTS public.set_updated_at();")
    op.execute("DROP FUNCTION IF EXISTS public.has_role(uuid, app_role);")
    app_role.drop(op.get_bind(), checkfirst=True)
