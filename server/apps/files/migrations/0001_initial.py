import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DerivativeJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('owner_id', models.BigIntegerField(db_index=True)),
                ('file_id', models.BigIntegerField(db_index=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('running', 'Running'), ('done', 'Done'), ('failed', 'Failed')], default='pending', max_length=16)),
                ('attempts', models.PositiveIntegerField(default=0, help_text='Number of times the job was claimed by a worker')),
                ('next_attempt_at', models.DateTimeField(default=django.utils.timezone.now, help_text='Earliest time the job may be claimed')),
                ('last_error', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Derivative Job',
                'verbose_name_plural': 'Derivative Jobs',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['status', 'next_attempt_at'], name='jobs_status_due_idx')],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('kind', models.CharField(choices=[('folder', 'Folder'), ('file', 'File'), ('image', 'Image')], max_length=16)),
                ('is_public', models.BooleanField(default=False)),
                ('storage_ref', models.CharField(blank=True, default='', help_text='Name of the content in the byte store (empty for folders)', max_length=512)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='files.file')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['user', 'parent', 'id'], name='files_user_parent_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(models.Q(('kind', 'folder'), ('storage_ref', '')), models.Q(models.Q(('kind', 'folder'), _negated=True), models.Q(('storage_ref', ''), _negated=True)), _connector='OR'), name='files_storage_ref_matches_kind')],
            },
        ),
    ]
