from django.db import migrations, models
import django.db.models.deletion
import formhelpers.accessible


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Address",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("street", models.CharField(blank=True, max_length=200)),
                ("city", models.CharField(max_length=100)),
                ("postal_code", models.CharField(blank=True, max_length=20)),
            ],
            options={
                "verbose_name_plural": "addresses",
            },
            bases=(formhelpers.accessible.FormAccessible, models.Model),
        ),
        migrations.CreateModel(
            name="Interest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("bio", models.TextField(blank=True)),
                (
                    "plan",
                    models.CharField(
                        choices=[("free", "Free"), ("pro", "Pro"), ("team", "Team")],
                        default="free",
                        max_length=20,
                    ),
                ),
                ("newsletter", models.BooleanField(default=False)),
                ("birthday", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "address",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="profiles",
                        to="profiles.address",
                    ),
                ),
                (
                    "interests",
                    models.ManyToManyField(blank=True, related_name="profiles", to="profiles.interest"),
                ),
            ],
            options={
                "ordering": ["name"],
            },
            bases=(formhelpers.accessible.FormAccessible, models.Model),
        ),
    ]
