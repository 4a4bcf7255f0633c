from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('bills', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='participant',
            name='paid_at',
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
