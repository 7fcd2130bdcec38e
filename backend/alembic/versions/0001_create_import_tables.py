"""
Create assessment model, assessment and import tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ID = mysql.BIGINT(unsigned=True)
_TABLE_OPTIONS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_0900_ai_ci",
}


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        mysql.DATETIME(fsp=3),
        server_default=sa.text("CURRENT_TIMESTAMP(3)"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        mysql.DATETIME(fsp=3),
        server_default=sa.text("CURRENT_TIMESTAMP(3) ON UPDATE CURRENT_TIMESTAMP(3)"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "admin_users",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=191), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("1"), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_admin_users"),
        sa.UniqueConstraint("user_id", name="uq_admin_users_user_id"),
        **_TABLE_OPTIONS,
    )
    op.create_index("idx_admin_users_is_active", "admin_users", ["is_active"], unique=False)

    op.create_table(
        "models",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("slug", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.String(length=32), server_default="1.0", nullable=False),
        sa.Column("status", sa.String(length=32), server_default="draft", nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_models"),
        sa.UniqueConstraint("slug", name="uq_models_slug"),
        **_TABLE_OPTIONS,
    )

    op.create_table(
        "dimensions",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column(
            "model_id",
            _ID,
            sa.ForeignKey("models.id", ondelete="CASCADE", name="fk_dimensions_model"),
            nullable=False,
        ),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_dimensions"),
        sa.UniqueConstraint("model_id", "key", name="uq_dimensions_model_key"),
        **_TABLE_OPTIONS,
    )
    op.create_index("idx_dimensions_model_sort", "dimensions", ["model_id", "sort_order"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column(
            "model_id",
            _ID,
            sa.ForeignKey("models.id", ondelete="CASCADE", name="fk_questions_model"),
            nullable=False,
        ),
        sa.Column(
            "dimension_id",
            _ID,
            sa.ForeignKey("dimensions.id", ondelete="SET NULL", name="fk_questions_dimension"),
            nullable=True,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_questions"),
        **_TABLE_OPTIONS,
    )
    op.create_index("idx_questions_model_sort", "questions", ["model_id", "sort_order", "id"], unique=False)

    op.create_table(
        "answers",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column(
            "question_id",
            _ID,
            sa.ForeignKey("questions.id", ondelete="CASCADE", name="fk_answers_question"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_answers"),
        **_TABLE_OPTIONS,
    )
    op.create_index("idx_answers_question_sort", "answers", ["question_id", "sort_order", "id"], unique=False)

    op.create_table(
        "import_batches",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("source", sa.String(length=128), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=True),
        sa.Column(
            "imported_by_admin_id",
            _ID,
            sa.ForeignKey("admin_users.id", ondelete="RESTRICT", name="fk_import_batches_admin"),
            nullable=False,
        ),
        sa.Column("assessment_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("question_mappings", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_import_batches"),
        **_TABLE_OPTIONS,
    )
    op.create_index("idx_import_batches_created", "import_batches", ["created_at"], unique=False)
    op.create_index("idx_import_batches_source", "import_batches", ["source"], unique=False)

    op.create_table(
        "assessments",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column(
            "model_id",
            _ID,
            sa.ForeignKey("models.id", ondelete="CASCADE", name="fk_assessments_model"),
            nullable=False,
        ),
        sa.Column("session_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="in_progress", nullable=False),
        sa.Column("started_at", mysql.DATETIME(fsp=3), server_default=sa.text("CURRENT_TIMESTAMP(3)"), nullable=False),
        sa.Column("completed_at", mysql.DATETIME(fsp=3), nullable=True),
        sa.Column(
            "import_batch_id",
            _ID,
            sa.ForeignKey("import_batches.id", ondelete="CASCADE", name="fk_assessments_import_batch"),
            nullable=True,
        ),
        sa.Column("external_assessment_id", sa.String(length=255), nullable=True),
        sa.Column("respondent_meta", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_assessments"),
        **_TABLE_OPTIONS,
    )
    op.create_index("idx_assessments_model", "assessments", ["model_id"], unique=False)
    op.create_index("idx_assessments_import_batch", "assessments", ["import_batch_id"], unique=False)

    op.create_table(
        "assessment_responses",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column(
            "assessment_id",
            _ID,
            sa.ForeignKey("assessments.id", ondelete="CASCADE", name="fk_assessment_responses_assessment"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            _ID,
            sa.ForeignKey("questions.id", ondelete="CASCADE", name="fk_assessment_responses_question"),
            nullable=False,
        ),
        sa.Column(
            "answer_id",
            _ID,
            sa.ForeignKey("answers.id", ondelete="CASCADE", name="fk_assessment_responses_answer"),
            nullable=False,
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_assessment_responses"),
        sa.UniqueConstraint("assessment_id", "question_id", name="uq_assessment_responses_question"),
        **_TABLE_OPTIONS,
    )
    op.create_index(
        "idx_assessment_responses_assessment",
        "assessment_responses",
        ["assessment_id"],
        unique=False,
    )

    op.create_table(
        "import_question_mappings",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("source", sa.String(length=128), nullable=False),
        sa.Column(
            "model_id",
            _ID,
            sa.ForeignKey("models.id", ondelete="CASCADE", name="fk_import_question_mappings_model"),
            nullable=False,
        ),
        sa.Column("external_question_id", sa.String(length=255), nullable=False),
        sa.Column(
            "question_id",
            _ID,
            sa.ForeignKey("questions.id", ondelete="CASCADE", name="fk_import_question_mappings_question"),
            nullable=False,
        ),
        sa.Column(
            "import_batch_id",
            _ID,
            sa.ForeignKey("import_batches.id", ondelete="CASCADE", name="fk_import_question_mappings_batch"),
            nullable=False,
        ),
        sa.Column("confidence", sa.Float(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_import_question_mappings"),
        sa.UniqueConstraint(
            "source",
            "model_id",
            "external_question_id",
            name="uq_import_question_mappings_external",
        ),
        **_TABLE_OPTIONS,
    )
    op.create_index(
        "idx_import_question_mappings_batch",
        "import_question_mappings",
        ["import_batch_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_import_question_mappings_batch", table_name="import_question_mappings")
    op.drop_table("import_question_mappings")
    op.drop_index("idx_assessment_responses_assessment", table_name="assessment_responses")
    op.drop_table("assessment_responses")
    op.drop_index("idx_assessments_import_batch", table_name="assessments")
    op.drop_index("idx_assessments_model", table_name="assessments")
    op.drop_table("assessments")
    op.drop_index("idx_import_batches_source", table_name="import_batches")
    op.drop_index("idx_import_batches_created", table_name="import_batches")
    op.drop_table("import_batches")
    op.drop_index("idx_answers_question_sort", table_name="answers")
    op.drop_table("answers")
    op.drop_index("idx_questions_model_sort", table_name="questions")
    op.drop_table("questions")
    op.drop_index("idx_dimensions_model_sort", table_name="dimensions")
    op.drop_table("dimensions")
    op.drop_table("models")
    op.drop_index("idx_admin_users_is_active", table_name="admin_users")
    op.drop_table("admin_users")
