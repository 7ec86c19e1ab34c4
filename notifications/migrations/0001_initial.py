import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("booking", "0001_initial"),
        ("staff", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("APPOINTMENT_CREATED", "Appointment created"),
                            ("STATUS_CHANGED", "Appointment status changed"),
                            ("APPOINTMENT_CANCELLED", "Appointment cancelled"),
                            ("APPOINTMENT_RESCHEDULED", "Appointment rescheduled"),
                            ("TIME_OFF_APPROVED", "Time off approved"),
                            ("TIME_OFF_REJECTED", "Time off rejected"),
                        ],
                        max_length=40,
                    ),
                ),
                ("recipient", models.EmailField(blank=True, max_length=254)),
                ("subject", models.CharField(max_length=200)),
                ("message", models.TextField()),
                ("sent", models.BooleanField(default=False)),
                ("error", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "appointment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="booking.appointment",
                    ),
                ),
                (
                    "time_off_request",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="staff.timeoffrequest",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
