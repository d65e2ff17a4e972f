from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("workforce", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="worker",
            name="total_points",
            field=models.BigIntegerField(default=0),
        ),
        migrations.AlterField(
            model_name="worker",
            name="topic_points",
            field=models.BigIntegerField(default=0),
        ),
    ]
