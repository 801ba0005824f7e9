import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("keys", "0001_initial"),
        ("resources", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="reservableresource",
            name="key",
            field=models.ForeignKey(
                blank=True,
                help_text="The key that opens this resource. Empty means any key of the key type.",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="resources",
                to="keys.dormitorykey",
            ),
        ),
    ]
