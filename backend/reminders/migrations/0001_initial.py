import django.db.models.deletion
from django.db import migrations, models

import backend.reminders.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentReminder',
            fields=[
                ('id', models.CharField(default=backend.reminders.models.new_reminder_id, editable=False, max_length=36, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('bill_number', models.CharField(blank=True, max_length=100)),
                ('original_due_date', models.DateField()),
                ('reminder_date', models.DateField()),
                ('next_reminder_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('overdue', 'Overdue'), ('due_today', 'Due Today'), ('upcoming', 'Upcoming')], default='pending', max_length=20)),
                ('is_read', models.BooleanField(default=False)),
                ('is_acknowledged', models.BooleanField(default=False)),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('caterer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payment_reminders', to='parties.caterer')),
            ],
            options={
                'db_table': 'payment_reminders',
                'ordering': ['reminder_date'],
                'indexes': [
                    models.Index(fields=['status'], name='payment_rem_status_idx'),
                    models.Index(fields=['reminder_date'], name='payment_rem_reminder_date_idx'),
                    models.Index(fields=['original_due_date'], name='payment_rem_due_date_idx'),
                ],
            },
        ),
    ]
