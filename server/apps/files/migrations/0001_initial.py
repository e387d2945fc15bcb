import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(
                    auto_created=True,
                    primary_key=True,
                    serialize=False,
                    verbose_name='ID',
                )),
                ('account_id', models.CharField(
                    db_index=True,
                    help_text='Auth account that uploaded the file',
                    max_length=64,
                )),
                ('blob_ref', models.CharField(
                    editable=False,
                    help_text='Key in blob storage: {owner_id}/{uuid}.{ext}',
                    max_length=1024,
                    unique=True,
                )),
                ('name', models.CharField(max_length=255)),
                ('extension', models.CharField(
                    blank=True,
                    default='',
                    help_text='Lowercase extension without dot',
                    max_length=32,
                )),
                ('type', models.CharField(
                    choices=[
                        ('document', 'Document'),
                        ('image', 'Image'),
                        ('video', 'Video'),
                        ('audio', 'Audio'),
                        ('other', 'Other'),
                    ],
                    default='other',
                    max_length=16,
                )),
                ('size_bytes', models.BigIntegerField(
                    help_text='File size in bytes',
                )),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='files',
                    to='accounts.account',
                )),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(
                        fields=['owner', '-created_at'],
                        name='files_owner_recent_idx',
                    ),
                    models.Index(
                        fields=['owner', 'type'],
                        name='files_owner_type_idx',
                    ),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(size_bytes__gte=0),
                        name='files_size_bytes_non_negative',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='FileShare',
            fields=[
                ('id', models.BigAutoField(
                    auto_created=True,
                    primary_key=True,
                    serialize=False,
                    verbose_name='ID',
                )),
                ('email', models.EmailField(max_length=254)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('file', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='shares',
                    to='files.file',
                )),
            ],
            options={
                'verbose_name': 'File share',
                'verbose_name_plural': 'File shares',
                'indexes': [
                    models.Index(
                        fields=['email'],
                        name='file_shares_email_idx',
                    ),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        fields=('file', 'email'),
                        name='file_shares_file_email_unique',
                    ),
                ],
            },
        ),
    ]
