import uuid

import django.core.validators
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('email', models.EmailField(help_text='Login email (stored lower-cased)', max_length=254, unique=True)),
                ('display_name', models.CharField(blank=True, help_text='Full name of the student', max_length=150)),
                ('course', models.CharField(blank=True, help_text='Course/program code, e.g. BSIT', max_length=50)),
                ('student_id', models.CharField(blank=True, help_text='Numeric student identifier', max_length=32, validators=[django.core.validators.RegexValidator('^\\d+$', 'Student ID must contain digits only.')])),
                ('is_admin', models.BooleanField(default=False, help_text='Administrators manage candidates, cycles and approvals')),
                ('approved', models.BooleanField(default=False, help_text='Whether an admin has approved this account')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'ordering': ['-date_joined'],
                'indexes': [models.Index(fields=['approved', '-date_joined'], name='account_pending_idx')],
            },
        ),
        migrations.CreateModel(
            name='Candidate',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Candidate name', max_length=100)),
                ('position', models.CharField(help_text='Position the candidate is running for', max_length=50)),
                ('party', models.CharField(blank=True, help_text='Optional party or section', max_length=100)),
                ('course', models.CharField(blank=True, help_text='Restricts Class Representative candidates to one course', max_length=50)),
                ('slogan', models.CharField(blank=True, help_text='Optional campaign slogan', max_length=255)),
                ('published', models.BooleanField(default=False, help_text='Whether the candidate is visible to voters')),
                ('vote_count', models.PositiveIntegerField(default=0, help_text='Cached vote count (best effort)')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['position'], name='candidate_position_idx'),
                    models.Index(fields=['published'], name='candidate_published_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VotingCycle',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Cycle name', max_length=200)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('live', 'Live'), ('ended', 'Ended')], default='draft', help_text='Lifecycle state (changed through the cycle manager only)', max_length=10)),
                ('selected_candidates', models.JSONField(blank=True, default=dict, help_text="Mapping of position to the candidate ids on this cycle's ballot")),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('ended_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status'], name='cycle_status_idx')],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'live')), fields=('status',), name='single_live_voting_cycle'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Vote',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('voter_id', models.UUIDField(db_index=True, help_text='Account that cast this vote (kept when the account is removed)')),
                ('candidate_id', models.UUIDField(db_index=True, help_text='Candidate chosen')),
                ('position', models.CharField(help_text='Position this vote was cast for', max_length=50)),
                ('cycle_id', models.UUIDField(blank=True, db_index=True, help_text='Voting cycle the vote belongs to', null=True)),
                ('cast_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-cast_at'],
                'indexes': [models.Index(fields=['cycle_id', 'candidate_id'], name='vote_cycle_candidate_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('voter_id', 'position', 'cycle_id'), name='one_vote_per_position_per_cycle'),
                ],
            },
        ),
    ]
