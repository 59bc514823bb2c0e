import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('shop', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymeTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transaction_id', models.CharField(max_length=64, unique=True)),
                ('amount', models.BigIntegerField()),
                ('time', models.BigIntegerField()),
                ('state', models.SmallIntegerField(choices=[(1, 'created'), (2, 'performed'), (-1, 'cancelled'), (-2, 'cancelled after perform')], db_index=True, default=1)),
                ('reason', models.SmallIntegerField(blank=True, null=True)),
                ('create_time', models.BigIntegerField()),
                ('perform_time', models.BigIntegerField(default=0)),
                ('cancel_time', models.BigIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payme_transactions', to='shop.ordermodel')),
            ],
            options={
                'db_table': 'payme_transactions',
                'ordering': ['-create_time'],
            },
        ),
    ]
