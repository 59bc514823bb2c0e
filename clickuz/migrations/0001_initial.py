import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('shop', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ClickTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('click_trans_id', models.BigIntegerField(unique=True)),
                ('click_paydoc_id', models.BigIntegerField(blank=True, null=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('state', models.CharField(choices=[('prepared', 'Prepared'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled')], db_index=True, default='prepared', max_length=16)),
                ('click_error', models.IntegerField(blank=True, null=True)),
                ('sign_time', models.CharField(blank=True, default='', max_length=32)),
                ('complete_time', models.BigIntegerField(blank=True, null=True)),
                ('applied', models.BooleanField(db_index=True, default=False)),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('last_error', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='click_transactions', to='shop.ordermodel')),
            ],
            options={
                'db_table': 'click_transactions',
                'ordering': ['-created_at'],
            },
        ),
    ]
