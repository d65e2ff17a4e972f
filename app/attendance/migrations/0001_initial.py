from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
        ("workforce", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AttendanceRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rfid", models.CharField(max_length=128)),
                ("name", models.CharField(max_length=255)),
                ("username", models.CharField(max_length=100)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("department", models.CharField(blank=True, default="", max_length=100)),
                ("photo", models.CharField(blank=True, default="", max_length=255)),
                ("date", models.DateField()),
                ("time", models.CharField(max_length=32)),
                ("presence", models.BooleanField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_records",
                        to="tenants.tenant",
                    ),
                ),
                (
                    "worker",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="attendance_records",
                        to="workforce.worker",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "rfid", "created_at"], name="attendance_tenant_rfid_idx"),
                    models.Index(fields=["tenant", "date"], name="attendance_tenant_date_idx"),
                ],
            },
        ),
    ]
