"""initial_schema

Revision ID: 5a1c7e2d9b30
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from haemong_backend.context.chat.prompts import (
    ChatPrompts,
    FEMALE_EASTERN,
    FEMALE_WESTERN,
    MALE_EASTERN,
    MALE_WESTERN,
)


# revision identifiers, used by Alembic.
revision: str = '5a1c7e2d9b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# id order matters: bot_settings/bot_personalities id 2 is the default persona
PERSONAS = [
    (MALE_EASTERN, 'male_eastern', '전통 해몽사',
     {'traits': ['지혜로운', '신중한'], 'tone': '격식있는', 'approach': '음양오행'}),
    (FEMALE_EASTERN, 'female_eastern', '따뜻한 해몽사',
     {'traits': ['따뜻한', '포용적인'], 'tone': '친근한', 'approach': '전통 해몽'}),
    (MALE_WESTERN, 'male_western', '심리학자',
     {'traits': ['논리적인', '분석적인'], 'tone': '전문적인', 'approach': '융 심리학'}),
    (FEMALE_WESTERN, 'female_western', '상담사',
     {'traits': ['공감적인', '부드러운'], 'tone': '따뜻한', 'approach': '치유 상담'}),
]


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('nickname', sa.String(50), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('provider', sa.String(20), nullable=False, server_default='email'),
        sa.Column('provider_id', sa.String(255), nullable=True),
        sa.Column('subscription_status', sa.String(20), nullable=False, server_default='free'),
        sa.Column('premium_expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('profile_image_url', sa.String(1024), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('nickname', name='uq_users_nickname'),
        sa.UniqueConstraint('provider', 'provider_id', name='uq_users_provider_identity'),
    )

    bot_settings = op.create_table(
        'bot_settings',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('gender', sa.String(10), nullable=False),
        sa.Column('style', sa.String(10), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('gender', 'style', name='uq_bot_settings_gender_style'),
    )

    bot_personalities = op.create_table(
        'bot_personalities',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('gender', sa.String(10), nullable=False),
        sa.Column('style', sa.String(10), nullable=False),
        sa.Column('personality_traits', sa.JSON, nullable=False),
        sa.Column('system_prompt', sa.Text, nullable=False),
        sa.Column('welcome_message', sa.Text, nullable=False),
        sa.Column('image_style_prompt', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'chat_rooms',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('bot_settings_id', sa.Integer, sa.ForeignKey('bot_settings.id'), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'date', name='uq_chat_rooms_user_date'),
    )
    op.create_index('ix_chat_rooms_user_id', 'chat_rooms', ['user_id'])

    op.create_table(
        'messages',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('chat_room_id', UUID(as_uuid=True), sa.ForeignKey('chat_rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('image_url', sa.String(2048), nullable=True),
        sa.Column('interpretation', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_messages_room_created', 'messages', ['chat_room_id', 'created_at'])

    op.create_table(
        'generated_images',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chat_room_id', UUID(as_uuid=True), sa.ForeignKey('chat_rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_url', sa.String(2048), nullable=False),
        sa.Column('image_path', sa.String(1024), nullable=True),
        sa.Column('image_prompt', sa.Text, nullable=True),
        sa.Column('generation_model', sa.String(50), nullable=True),
        sa.Column('bot_gender', sa.String(10), nullable=True),
        sa.Column('bot_style', sa.String(10), nullable=True),
        sa.Column('is_premium', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_generated_images_user_id', 'generated_images', ['user_id'])
    op.create_index('ix_generated_images_chat_room_id', 'generated_images', ['chat_room_id'])

    op.create_table(
        'videos',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chat_room_id', UUID(as_uuid=True), sa.ForeignKey('chat_rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('video_url', sa.String(2048), nullable=False),
        sa.Column('generation_model', sa.String(100), nullable=True),
        sa.Column('style', sa.JSON, nullable=True),
        sa.Column('dream_content', sa.Text, nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_videos_user_id', 'videos', ['user_id'])

    op.create_table(
        'posts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chat_room_id', UUID(as_uuid=True), sa.ForeignKey('chat_rooms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('dream_content', sa.Text, nullable=False),
        sa.Column('interpretation_content', sa.Text, nullable=False),
        sa.Column('image_url', sa.String(2048), nullable=True),
        sa.Column('bot_gender', sa.String(10), nullable=False),
        sa.Column('bot_style', sa.String(10), nullable=False),
        sa.Column('tags', ARRAY(sa.String(50)), nullable=False, server_default='{}'),
        sa.Column('is_public', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('is_premium', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('likes_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('comments_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('views_count', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_posts_user_id', 'posts', ['user_id'])
    op.create_index('ix_posts_public_created', 'posts', ['is_public', 'created_at'])

    op.create_table(
        'comments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_comment_id', UUID(as_uuid=True), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('likes_count', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_comments_post_id', 'comments', ['post_id'])

    op.create_table(
        'likes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=True),
        sa.Column('comment_id', UUID(as_uuid=True), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('user_id', 'post_id', name='uq_likes_user_post'),
        sa.UniqueConstraint('user_id', 'comment_id', name='uq_likes_user_comment'),
        sa.CheckConstraint('(post_id IS NULL) <> (comment_id IS NULL)', name='ck_likes_single_target'),
    )

    op.create_table(
        'bookmarks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('user_id', 'post_id', name='uq_bookmarks_user_post'),
    )

    # Seed the four personas
    op.bulk_insert(bot_settings, [
        {'id': i, 'gender': key[0], 'style': key[1]}
        for i, (key, _, _, _) in enumerate(PERSONAS, start=1)
    ])
    op.bulk_insert(bot_personalities, [
        {
            'id': i,
            'name': name,
            'display_name': display_name,
            'gender': key[0],
            'style': key[1],
            'personality_traits': traits,
            'system_prompt': ChatPrompts.system_prompt(*key),
            'welcome_message': ChatPrompts.welcome_message(*key),
            'image_style_prompt': ChatPrompts.IMAGE_STYLES[key[1]],
            'is_active': True,
        }
        for i, (key, name, display_name, traits) in enumerate(PERSONAS, start=1)
    ])
    # explicit ids above leave the sequences behind
    op.execute("SELECT setval('bot_settings_id_seq', (SELECT MAX(id) FROM bot_settings))")
    op.execute("SELECT setval('bot_personalities_id_seq', (SELECT MAX(id) FROM bot_personalities))")


def downgrade() -> None:
    for table in (
        'bookmarks', 'likes', 'comments', 'posts', 'videos', 'generated_images',
        'messages', 'chat_rooms', 'bot_personalities', 'bot_settings', 'users',
    ):
        op.drop_table(table)
