from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('clickuz', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='clicktransaction',
            name='needs_refund',
            field=models.BooleanField(db_index=True, default=False),
        ),
    ]
