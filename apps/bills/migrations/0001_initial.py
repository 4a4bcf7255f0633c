import uuid

import django.db.models.deletion
from django.db import migrations, models

import apps.bills.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Bill',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('merchant_name', models.CharField(max_length=255)),
                ('total_amount', models.BigIntegerField(help_text='Total in minor units of the bill currency.')),
                ('currency', models.CharField(default=apps.bills.models.default_currency, help_text='ISO 4217 currency code.', max_length=3)),
                ('status', models.CharField(choices=[('created', 'Created'), ('active', 'Active'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='created', max_length=20)),
                ('split_method', models.CharField(choices=[('equal', 'Equal'), ('custom_amount', 'Custom Amount'), ('percentage', 'Percentage')], default='equal', max_length=20)),
                ('bill_date', models.DateField()),
            ],
            options={
                'db_table': 'bills',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('total_amount__gte', 0)), name='bill_total_amount_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Participant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=255)),
                ('phone', models.CharField(blank=True, default='', max_length=32)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('position', models.PositiveIntegerField()),
                ('amount_to_pay', models.BigIntegerField(default=0, help_text='Share of the bill in minor units.')),
                ('manually_edited', models.BooleanField(default=False, help_text='Set when the amount was entered by hand.')),
                ('percentage', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('overdue', 'Overdue')], db_index=True, default='pending', max_length=20)),
                ('bill', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='participants', to='bills.bill')),
            ],
            options={
                'db_table': 'participants',
                'ordering': ['bill_id', 'position'],
                'indexes': [
                    models.Index(fields=['bill', 'position'], name='participant_bill_position'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount_to_pay__gte', 0)), name='participant_amount_non_negative'),
                ],
            },
        ),
    ]
