from alembic import op
import sqlalchemy as sa


revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _element_columns():
    columns = []
    for element in ('hook', 'avatar', 'script', 'cta', 'visual', 'audio'):
        columns.append(sa.Column(f'{element}_result', sa.String(), nullable=True))
        columns.append(sa.Column(f'{element}_note', sa.Text(), nullable=True))
    return columns


def upgrade() -> None:
    # Create ads table
    op.create_table(
        'ads',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('concept', sa.Text(), nullable=False),
        sa.Column('hypothesis', sa.Text(), nullable=False, server_default=''),
        sa.Column('angle', sa.String(), nullable=False, server_default='fear'),
        sa.Column('angle_detail', sa.String(), nullable=True),
        sa.Column('awareness', sa.String(), nullable=False, server_default='unaware'),
        sa.Column('format', sa.String(), nullable=False, server_default='static'),
        sa.Column('funnel_stage', sa.String(), nullable=False, server_default='cold'),
        sa.Column('source_type', sa.String(), nullable=False, server_default='original'),
        sa.Column('product', sa.String(), nullable=True),
        sa.Column('source_url', sa.String(), nullable=True),
        sa.Column('reference_media_url', sa.String(), nullable=True),
        sa.Column('thumbnail_url', sa.String(), nullable=True),
        sa.Column('hook', sa.Text(), nullable=True),
        sa.Column('script', sa.Text(), nullable=True),
        sa.Column('cta', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='idea'),
        sa.Column('is_locked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('review_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('testing_started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('lock_days', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('testing_budget', sa.Float(), nullable=False, server_default='50'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('result', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=True),
        *_element_columns(),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('spend', sa.Float(), nullable=True),
        sa.Column('revenue', sa.Float(), nullable=True),
        sa.Column('impressions', sa.Integer(), nullable=True),
        sa.Column('clicks', sa.Integer(), nullable=True),
        sa.Column('purchases', sa.Integer(), nullable=True),
        sa.Column('video_views_3s', sa.Integer(), nullable=True),
        sa.Column('video_views_thruplay', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_ads_status'), 'ads', ['status'], unique=False)

    # Create ad_tags table (fail reasons / success factors)
    op.create_table(
        'ad_tags',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('ad_id', sa.String(), nullable=False),
        sa.Column('kind', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['ad_id'], ['ads.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_ad_tags_ad_id'), 'ad_tags', ['ad_id'], unique=False)
    op.create_index('ix_ad_tags_kind_value', 'ad_tags', ['kind', 'value'], unique=False)
    op.create_index('ix_ad_tags_unique', 'ad_tags', ['ad_id', 'kind', 'value'], unique=True)

    # Create learnings table (ad_id has no foreign key)
    op.create_table(
        'learnings',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('type', sa.String(), nullable=False, server_default='insight'),
        sa.Column('ad_id', sa.String(), nullable=True),
        sa.Column('angle', sa.String(), nullable=True),
        sa.Column('format', sa.String(), nullable=True),
        sa.Column('result', sa.String(), nullable=True),
        *_element_columns(),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_learnings_ad_id'), 'learnings', ['ad_id'], unique=False)
    op.create_index('ix_learnings_angle_format', 'learnings', ['angle', 'format'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_learnings_angle_format', table_name='learnings')
    op.drop_index(op.f('ix_learnings_ad_id'), table_name='learnings')
    op.drop_table('learnings')
    op.drop_index('ix_ad_tags_unique', table_name='ad_tags')
    op.drop_index('ix_ad_tags_kind_value', table_name='ad_tags')
    op.drop_index(op.f('ix_ad_tags_ad_id'), table_name='ad_tags')
    op.drop_table('ad_tags')
    op.drop_index(op.f('ix_ads_status'), table_name='ads')
    op.drop_table('ads')
