import django.db.models.deletion
from django.db import migrations, models

import scheduling.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("booking", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="OperatingSchedule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("opening_time", models.TimeField()),
                ("closing_time", models.TimeField()),
                (
                    "closed_weekdays",
                    models.JSONField(blank=True, default=list, validators=[scheduling.models._validate_weekdays]),
                ),
                (
                    "salon",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="schedule",
                        to="booking.salon",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="ClosureModification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(choices=[("once", "Once"), ("recurring", "Recurring")], max_length=10),
                ),
                ("date", models.DateField(blank=True, null=True)),
                ("weekday_index", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "closure_type",
                    models.CharField(choices=[("full_day", "Full day"), ("interval", "Interval")], max_length=10),
                ),
                ("interval_start", models.TimeField(blank=True, null=True)),
                ("interval_end", models.TimeField(blank=True, null=True)),
                ("reason", models.CharField(default="Manual block", max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "salon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="closures",
                        to="booking.salon",
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="closures",
                        to="booking.staff",
                    ),
                ),
            ],
            options={
                "ordering": ["salon_id", "id"],
            },
        ),
        migrations.CreateModel(
            name="Break",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("reason", models.CharField(blank=True, max_length=200)),
                (
                    "salon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="breaks",
                        to="booking.salon",
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="breaks",
                        to="booking.staff",
                    ),
                ),
            ],
            options={
                "ordering": ["salon_id", "start_time"],
            },
        ),
    ]
