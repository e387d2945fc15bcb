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
            name='Account',
            fields=[
                ('id', models.BigAutoField(
                    auto_created=True,
                    primary_key=True,
                    serialize=False,
                    verbose_name='ID',
                )),
                ('full_name', models.CharField(max_length=255)),
                ('email', models.EmailField(
                    help_text='Normalized (lowercase) email address',
                    max_length=254,
                    unique=True,
                )),
                ('avatar_url', models.URLField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='account',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Account',
                'verbose_name_plural': 'Accounts',
            },
        ),
        migrations.CreateModel(
            name='EmailToken',
            fields=[
                ('id', models.BigAutoField(
                    auto_created=True,
                    primary_key=True,
                    serialize=False,
                    verbose_name='ID',
                )),
                ('secret_hash', models.CharField(max_length=128)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('expires_at', models.DateTimeField()),
                ('used_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='email_tokens',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Email token',
                'verbose_name_plural': 'Email tokens',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(
                        fields=['user', '-created_at'],
                        name='email_tokens_user_recent_idx',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='AccountSession',
            fields=[
                ('id', models.BigAutoField(
                    auto_created=True,
                    primary_key=True,
                    serialize=False,
                    verbose_name='ID',
                )),
                ('session_id', models.CharField(
                    help_text='Session secret kept in an HTTP-only cookie',
                    max_length=64,
                    unique=True,
                )),
                ('ip_address', models.GenericIPAddressField(
                    blank=True,
                    help_text='Client IP address',
                    null=True,
                )),
                ('user_agent', models.CharField(
                    blank=True,
                    default='',
                    help_text='Client user agent string',
                    max_length=255,
                )),
                ('started_at', models.DateTimeField(
                    auto_now_add=True,
                    help_text='Session start time',
                )),
                ('last_activity', models.DateTimeField(
                    auto_now=True,
                    db_index=True,
                    help_text='Last activity timestamp',
                )),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='account_sessions',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Account session',
                'verbose_name_plural': 'Account sessions',
                'ordering': ['-last_activity'],
                'indexes': [
                    models.Index(
                        fields=['user', '-last_activity'],
                        name='sessions_user_activity_idx',
                    ),
                ],
            },
        ),
    ]
