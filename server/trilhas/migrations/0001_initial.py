import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Trilha',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('category', models.CharField(max_length=100)),
                ('thumbnail_url', models.URLField(blank=True, max_length=500, null=True)),
                ('order', models.IntegerField(default=0)),
                ('start_content_id', models.UUIDField(blank=True, null=True)),
            ],
            options={
                'ordering': ['order', 'name'],
                'indexes': [models.Index(fields=['category', 'order'], name='trilha_category_order_idx')],
            },
        ),
        migrations.CreateModel(
            name='ContentItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('type', models.CharField(choices=[('video', 'Video'), ('text', 'Text'), ('audio', 'Audio'), ('image', 'Image'), ('file', 'File')], max_length=16)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('published', 'Published')], default='draft', max_length=16)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('next_content_id', models.UUIDField(blank=True, null=True)),
                ('order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('trilha', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='items', to='trilhas.trilha')),
            ],
            options={
                'ordering': ['order', 'created_at'],
                'indexes': [
                    models.Index(fields=['trilha', 'status', 'order'], name='item_trilha_status_order_idx'),
                    models.Index(fields=['status'], name='item_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContentQuestion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('prompt', models.TextField()),
                ('type', models.CharField(choices=[('multiple_choice', 'Multiple choice'), ('free_text', 'Free text')], default='multiple_choice', max_length=32)),
                ('order', models.IntegerField(default=0)),
                ('required', models.BooleanField(default=True)),
                ('content_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='trilhas.contentitem')),
            ],
            options={
                'ordering': ['order', 'id'],
                'indexes': [models.Index(fields=['content_item', 'order'], name='question_item_order_idx')],
            },
        ),
        migrations.CreateModel(
            name='ContentOption',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(max_length=255)),
                ('value', models.CharField(blank=True, max_length=255, null=True)),
                ('next_content_id', models.UUIDField(blank=True, null=True)),
                ('order', models.IntegerField(default=0)),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='options', to='trilhas.contentquestion')),
            ],
            options={
                'ordering': ['order', 'id'],
                'indexes': [models.Index(fields=['question', 'order'], name='option_question_order_idx')],
            },
        ),
        migrations.CreateModel(
            name='ContentAnswer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content_item_id', models.UUIDField()),
                ('question_id', models.BigIntegerField()),
                ('option_id', models.BigIntegerField(blank=True, null=True)),
                ('answer_text', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='content_answers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['user', 'created_at'], name='answer_user_created_idx'),
                    models.Index(fields=['user', 'content_item_id'], name='answer_user_item_idx'),
                ],
            },
        ),
    ]
