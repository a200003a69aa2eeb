"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create invoice_categories table
    op.create_table(
        'invoice_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_categories_id'), 'invoice_categories', ['id'], unique=False)
    op.create_index(op.f('ix_invoice_categories_user_id'), 'invoice_categories', ['user_id'], unique=False)

    # Create invoice_companies table
    op.create_table(
        'invoice_companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('tax_id', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_companies_id'), 'invoice_companies', ['id'], unique=False)
    op.create_index(op.f('ix_invoice_companies_user_id'), 'invoice_companies', ['user_id'], unique=False)
    op.create_index(op.f('ix_invoice_companies_name'), 'invoice_companies', ['name'], unique=False)

    # Create invoice_receivers table
    op.create_table(
        'invoice_receivers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_organization', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_receivers_id'), 'invoice_receivers', ['id'], unique=False)
    op.create_index(op.f('ix_invoice_receivers_user_id'), 'invoice_receivers', ['user_id'], unique=False)
    op.create_index(op.f('ix_invoice_receivers_name'), 'invoice_receivers', ['name'], unique=False)

    # Create invoice_tags table
    op.create_table(
        'invoice_tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_tags_id'), 'invoice_tags', ['id'], unique=False)
    op.create_index(op.f('ix_invoice_tags_user_id'), 'invoice_tags', ['user_id'], unique=False)

    # Create invoices table
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('invoice_started_at', sa.DateTime(), nullable=True),
        sa.Column('invoice_ended_at', sa.DateTime(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('target_amount', sa.Float(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('receiver_id', sa.Integer(), nullable=True),
        sa.Column('original_download_link', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['invoice_categories.id'], ),
        sa.ForeignKeyConstraint(['company_id'], ['invoice_companies.id'], ),
        sa.ForeignKeyConstraint(['receiver_id'], ['invoice_receivers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoices_id'), 'invoices', ['id'], unique=False)
    op.create_index(op.f('ix_invoices_user_id'), 'invoices', ['user_id'], unique=False)
    op.create_index(op.f('ix_invoices_category_id'), 'invoices', ['category_id'], unique=False)
    op.create_index(op.f('ix_invoices_company_id'), 'invoices', ['company_id'], unique=False)
    op.create_index(op.f('ix_invoices_receiver_id'), 'invoices', ['receiver_id'], unique=False)
    op.create_index(op.f('ix_invoices_status'), 'invoices', ['status'], unique=False)
    op.create_index(op.f('ix_invoices_created_at'), 'invoices', ['created_at'], unique=False)

    # Create invoice_items table
    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('target_currency', sa.String(length=3), nullable=False),
        sa.Column('target_amount', sa.Float(), nullable=False),
        sa.Column('fx_rate_used', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_items_id'), 'invoice_items', ['id'], unique=False)
    op.create_index(op.f('ix_invoice_items_invoice_id'), 'invoice_items', ['invoice_id'], unique=False)

    # Create invoice_tag_mappings table
    op.create_table(
        'invoice_tag_mappings',
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('invoice_tag_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invoice_tag_id'], ['invoice_tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('invoice_id', 'invoice_tag_id')
    )


def downgrade() -> None:
    op.drop_table('invoice_tag_mappings')
    op.drop_index(op.f('ix_invoice_items_invoice_id'), table_name='invoice_items')
    op.drop_index(op.f('ix_invoice_items_id'), table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index(op.f('ix_invoices_created_at'), table_name='invoices')
    op.drop_index(op.f('ix_invoices_status'), table_name='invoices')
    op.drop_index(op.f('ix_invoices_receiver_id'), table_name='invoices')
    op.drop_index(op.f('ix_invoices_company_id'), table_name='invoices')
    op.drop_index(op.f('ix_invoices_category_id'), table_name='invoices')
    op.drop_index(op.f('ix_invoices_user_id'), table_name='invoices')
    op.drop_index(op.f('ix_invoices_id'), table_name='invoices')
    op.drop_table('invoices')
    op.drop_index(op.f('ix_invoice_tags_user_id'), table_name='invoice_tags')
    op.drop_index(op.f('ix_invoice_tags_id'), table_name='invoice_tags')
    op.drop_table('invoice_tags')
    op.drop_index(op.f('ix_invoice_receivers_name'), table_name='invoice_receivers')
    op.drop_index(op.f('ix_invoice_receivers_user_id'), table_name='invoice_receivers')
    op.drop_index(op.f('ix_invoice_receivers_id'), table_name='invoice_receivers')
    op.drop_table('invoice_receivers')
    op.drop_index(op.f('ix_invoice_companies_name'), table_name='invoice_companies')
    op.drop_index(op.f('ix_invoice_companies_user_id'), table_name='invoice_companies')
    op.drop_index(op.f('ix_invoice_companies_id'), table_name='invoice_companies')
    op.drop_table('invoice_companies')
    op.drop_index(op.f('ix_invoice_categories_user_id'), table_name='invoice_categories')
    op.drop_index(op.f('ix_invoice_categories_id'), table_name='invoice_categories')
    op.drop_table('invoice_categories')
