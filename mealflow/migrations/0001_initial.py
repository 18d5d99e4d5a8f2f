import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('room_number', models.CharField(blank=True, max_length=50, null=True)),
                ('diet_order', models.CharField(
                    choices=[
                        ('Regular', 'Regular'),
                        ('Low Sodium', 'Low Sodium'),
                        ('Diabetic', 'Diabetic'),
                        ('Vegetarian', 'Vegetarian'),
                        ('Renal', 'Renal'),
                        ('Pureed', 'Pureed'),
                        ('Liquid', 'Liquid'),
                    ],
                    default='Regular',
                    max_length=50,
                )),
                ('allergies', models.JSONField(blank=True, default=list)),
                ('clinical_state', models.CharField(
                    choices=[
                        ('Stable', 'Stable'),
                        ('Critical', 'Critical'),
                        ('Observation', 'Observation'),
                        ('Post-Op', 'Post-Op'),
                        ('Discharge Pending', 'Discharge Pending'),
                        ('NPO', 'NPO'),
                    ],
                    default='Stable',
                    max_length=50,
                )),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'patients',
            },
        ),
        migrations.CreateModel(
            name='Recipe',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, null=True)),
                ('allergens', models.JSONField(blank=True, default=list)),
                ('diet_tags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'recipes',
            },
        ),
        migrations.CreateModel(
            name='MealRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(
                    choices=[
                        ('Draft', 'Draft'),
                        ('Validated', 'Validated'),
                        ('Rejected', 'Rejected'),
                        ('Finalized', 'Finalized'),
                    ],
                    default='Draft',
                    max_length=20,
                )),
                ('rejection_reason', models.TextField(blank=True, null=True)),
                ('finalized_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='meal_requests',
                    to='mealflow.patient',
                )),
            ],
            options={
                'db_table': 'meal_requests',
            },
        ),
        migrations.CreateModel(
            name='RequestItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('recipe', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='request_items',
                    to='mealflow.recipe',
                )),
                ('request', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='items',
                    to='mealflow.mealrequest',
                )),
            ],
            options={
                'db_table': 'request_items',
            },
        ),
        migrations.CreateModel(
            name='Tray',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(
                    choices=[
                        ('Preparation Started', 'Preparation Started'),
                        ('Accuracy Validated', 'Accuracy Validated'),
                        ('En Route', 'En Route'),
                        ('Delivered', 'Delivered'),
                        ('Retrieved', 'Retrieved'),
                    ],
                    default='Preparation Started',
                    max_length=30,
                )),
                ('accuracy_validated_at', models.DateTimeField(blank=True, null=True)),
                ('en_route_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('retrieved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('request', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='tray',
                    to='mealflow.mealrequest',
                )),
            ],
            options={
                'db_table': 'trays',
            },
        ),
    ]
