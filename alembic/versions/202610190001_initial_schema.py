from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        'api_keys',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('last_used', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_api_keys_key', 'api_keys', ['key'], unique=True)

    op.create_table(
        'uploads',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('file_id', sa.String(), nullable=False),
        sa.Column('group_id', sa.String(), nullable=False),
        sa.Column('original_name', sa.String(), nullable=False),
        sa.Column('relative_path', sa.String(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('content_type', sa.String(), nullable=True),
        sa.Column('api_key_id', sa.Integer(), sa.ForeignKey('api_keys.id'), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(), nullable=True),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_uploads_file_id', 'uploads', ['file_id'], unique=True)
    op.create_index('ix_uploads_group_id', 'uploads', ['group_id'])
    op.create_index('ix_uploads_api_key_id', 'uploads', ['api_key_id'])
    op.create_index(
        'idx_expires_at', 'uploads', ['expires_at'],
        sqlite_where=sa.text('expires_at IS NOT NULL'),
        postgresql_where=sa.text('expires_at IS NOT NULL'),
    )

def downgrade() -> None:
    op.drop_index('idx_expires_at', table_name='uploads')
    op.drop_index('ix_uploads_api_key_id', table_name='uploads')
    op.drop_index('ix_uploads_group_id', table_name='uploads')
    op.drop_index('ix_uploads_file_id', table_name='uploads')
    op.drop_table('uploads')
    op.drop_index('ix_api_keys_key', table_name='api_keys')
    op.drop_table('api_keys')
