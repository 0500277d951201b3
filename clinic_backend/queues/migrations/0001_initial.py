import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('core', '0001_initial'),
        ('patients', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SequenceLock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='CareSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('queue_number', models.CharField(db_index=True, max_length=8)),
                ('status', models.CharField(choices=[('WAITING_CONSULTATION', 'Waiting for consultation'), ('IN_CONSULTATION', 'In consultation'), ('WAITING_MEDICATION', 'Waiting for medication'), ('WAITING_PAYMENT', 'Waiting for payment'), ('COMPLETED', 'Completed')], db_index=True, default='WAITING_CONSULTATION', max_length=32)),
                ('complaints', models.TextField(blank=True)),
                ('diagnosis', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='care_sessions', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='care_sessions', to='patients.patient')),
                ('room', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='care_sessions', to='catalog.room')),
            ],
            options={
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='queues_care_status_3e1c2a_idx'),
                    models.Index(fields=['doctor', 'status'], name='queues_care_doctor_8b7d41_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CareSessionDiagnosis',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('care_session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='diagnoses', to='queues.caresession')),
                ('diagnosis', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='care_sessions', to='catalog.diagnosis')),
            ],
            options={
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('care_session', 'diagnosis'), name='uniq_care_session_diagnosis'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CareSessionTreatment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('applied_price', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('care_session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='treatments', to='queues.caresession')),
                ('treatment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='applications', to='catalog.treatment')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='DrugOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('dose', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('care_session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='drug_orders', to='queues.caresession')),
                ('drug', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='catalog.drug')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='VitalSign',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('height_cm', models.DecimalField(blank=True, decimal_places=1, max_digits=5, null=True)),
                ('weight_kg', models.DecimalField(blank=True, decimal_places=1, max_digits=5, null=True)),
                ('body_temperature_c', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ('blood_pressure', models.CharField(blank=True, max_length=16)),
                ('heart_rate_bpm', models.PositiveIntegerField(blank=True, null=True)),
                ('respiratory_rate_bpm', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('care_session', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='vital_sign', to='queues.caresession')),
            ],
        ),
    ]
