"""Baseline migration - users, submission workflow, clients and queues

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Creates every table of the Connect CRM API.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Users
    # ==========================================================================
    op.execute('''
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) UNIQUE NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            role VARCHAR(20) NOT NULL DEFAULT 'agent',
            is_active BOOLEAN NOT NULL DEFAULT true,
            token_version INTEGER NOT NULL DEFAULT 1,
            last_login TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_users_role_active ON users(role, is_active)')

    # ==========================================================================
    # Submissions
    # ==========================================================================
    op.execute('''
        CREATE TABLE submissions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255),
            phone VARCHAR(50) NOT NULL,
            service VARCHAR(50) NOT NULL,
            message TEXT NOT NULL,
            source VARCHAR(30) NOT NULL DEFAULT 'website_form',
            status VARCHAR(20) NOT NULL DEFAULT 'new',
            workflow_status VARCHAR(30) NOT NULL DEFAULT 'pending_validation',
            converted_to_client BOOLEAN NOT NULL DEFAULT false,
            client_id UUID,
            reviewed_by UUID REFERENCES users(id) ON DELETE SET NULL,
            reviewed_at TIMESTAMPTZ,
            validated_by UUID REFERENCES users(id) ON DELETE SET NULL,
            validated_at TIMESTAMPTZ,
            call_confirmed_by UUID REFERENCES users(id) ON DELETE SET NULL,
            call_confirmed_at TIMESTAMPTZ,
            call_notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_submissions_workflow ON submissions(workflow_status, created_at)')
    op.execute('CREATE INDEX idx_submissions_phone ON submissions(phone)')
    op.execute('CREATE INDEX idx_submissions_email ON submissions(email)')

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.execute('''
        CREATE TABLE clients (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            submission_id UUID REFERENCES submissions(id) ON DELETE SET NULL,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255),
            phone VARCHAR(50) NOT NULL,
            service VARCHAR(50) NOT NULL,
            message TEXT,
            source VARCHAR(30),
            status VARCHAR(20) NOT NULL DEFAULT 'new',
            assigned_to UUID REFERENCES users(id) ON DELETE SET NULL,
            created_by UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_clients_assigned ON clients(assigned_to, created_at)')
    op.execute('CREATE UNIQUE INDEX uq_clients_submission ON clients(submission_id)')

    op.execute('''
        CREATE TABLE client_notes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            added_by UUID REFERENCES users(id) ON DELETE SET NULL,
            added_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_client_notes_client ON client_notes(client_id, added_at)')

    # ==========================================================================
    # Access links and documents
    # ==========================================================================
    op.execute('''
        CREATE TABLE document_links (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            submission_id UUID NOT NULL REFERENCES submissions(id) ON DELETE CASCADE,
            token VARCHAR(64) NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            max_uploads INTEGER NOT NULL DEFAULT 10,
            upload_count INTEGER NOT NULL DEFAULT 0,
            notes TEXT,
            generated_by UUID REFERENCES users(id) ON DELETE SET NULL,
            last_used_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_document_links_capacity CHECK (upload_count <= max_uploads)
        )
    ''')
    op.execute('CREATE UNIQUE INDEX uq_document_links_token ON document_links(token)')
    op.execute('CREATE INDEX idx_document_links_submission ON document_links(submission_id, created_at)')

    op.execute('''
        CREATE TABLE documents (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            submission_id UUID NOT NULL REFERENCES submissions(id) ON DELETE CASCADE,
            document_link_id UUID REFERENCES document_links(id) ON DELETE SET NULL,
            file_name VARCHAR(255) NOT NULL,
            original_name VARCHAR(255) NOT NULL,
            file_type VARCHAR(100) NOT NULL,
            file_size BIGINT NOT NULL,
            storage_key VARCHAR(512) NOT NULL,
            storage_type VARCHAR(10) NOT NULL,
            document_type VARCHAR(50) NOT NULL,
            status VARCHAR(30) NOT NULL DEFAULT 'pending',
            verified_by UUID REFERENCES users(id) ON DELETE SET NULL,
            verified_at TIMESTAMPTZ,
            rejection_reason TEXT,
            notes TEXT,
            uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_documents_submission ON documents(submission_id, uploaded_at)')
    op.execute('CREATE INDEX idx_documents_link ON documents(document_link_id)')

    op.execute('''
        CREATE TABLE payment_links (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            submission_id UUID NOT NULL REFERENCES submissions(id) ON DELETE CASCADE,
            token VARCHAR(64) NOT NULL,
            amount NUMERIC(12, 2) NOT NULL CHECK (amount > 0),
            currency VARCHAR(3) NOT NULL,
            bank_details JSONB NOT NULL DEFAULT '{}'::jsonb,
            notes TEXT,
            expires_at TIMESTAMPTZ NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            status VARCHAR(20) NOT NULL DEFAULT 'pending',
            receipt_file_name VARCHAR(255),
            receipt_original_name VARCHAR(255),
            receipt_file_type VARCHAR(100),
            receipt_file_size BIGINT,
            receipt_storage_key VARCHAR(512),
            receipt_storage_type VARCHAR(10),
            receipt_uploaded_at TIMESTAMPTZ,
            generated_by UUID REFERENCES users(id) ON DELETE SET NULL,
            confirmed_by UUID REFERENCES users(id) ON DELETE SET NULL,
            confirmed_at TIMESTAMPTZ,
            rejected_by UUID REFERENCES users(id) ON DELETE SET NULL,
            rejected_at TIMESTAMPTZ,
            rejection_reason TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE UNIQUE INDEX uq_payment_links_token ON payment_links(token)')
    op.execute('CREATE INDEX idx_payment_links_submission ON payment_links(submission_id, created_at)')

    # ==========================================================================
    # Notifications, activity log, jobs
    # ==========================================================================
    op.execute('''
        CREATE TABLE notifications (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            recipient_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(50) NOT NULL,
            title VARCHAR(255) NOT NULL,
            message TEXT NOT NULL,
            link VARCHAR(500),
            data JSONB NOT NULL DEFAULT '{}'::jsonb,
            read BOOLEAN NOT NULL DEFAULT false,
            read_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_notif_recipient_unread ON notifications(recipient_id, read, created_at)')

    op.execute('''
        CREATE TABLE activity_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            action VARCHAR(50) NOT NULL,
            entity_type VARCHAR(30) NOT NULL,
            entity_id UUID,
            details JSONB NOT NULL DEFAULT '{}'::jsonb,
            ip_address VARCHAR(45),
            user_agent VARCHAR(500),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_activity_created ON activity_logs(created_at)')
    op.execute('CREATE INDEX idx_activity_entity ON activity_logs(entity_type, entity_id)')
    op.execute('CREATE INDEX idx_activity_user ON activity_logs(user_id, created_at)')

    op.execute('''
        CREATE TABLE jobs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            job_type VARCHAR(50) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{}'::jsonb,
            run_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            status VARCHAR(20) NOT NULL DEFAULT 'pending',
            attempts INTEGER NOT NULL DEFAULT 0,
            max_attempts INTEGER NOT NULL DEFAULT 3,
            last_error TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            started_at TIMESTAMPTZ,
            completed_at TIMESTAMPTZ
        )
    ''')
    op.execute("CREATE INDEX idx_jobs_pending ON jobs(status, run_at) WHERE status = 'pending'")


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        'jobs',
        'activity_logs',
        'notifications',
        'payment_links',
        'documents',
        'document_links',
        'client_notes',
        'clients',
        'submissions',
        'users',
    ):
        op.execute(f'DROP TABLE IF EXISTS {table} CASCADE')
