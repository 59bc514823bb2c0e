import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='OrderModel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(max_length=64, unique=True)),
                ('user_telegram_id', models.BigIntegerField(blank=True, null=True)),
                ('user_name', models.CharField(blank=True, default='', max_length=255)),
                ('user_phone', models.CharField(blank=True, default='', max_length=20)),
                ('items', models.JSONField(blank=True, default=list)),
                ('delivery_info', models.JSONField(blank=True, default=dict)),
                ('subtotal', models.IntegerField(default=0)),
                ('bonus_discount', models.IntegerField(default=0)),
                ('bonus_points_used', models.IntegerField(default=0)),
                ('delivery_fee', models.IntegerField(default=0)),
                ('total', models.IntegerField()),
                ('status', models.CharField(choices=[('pending', 'В ожидании'), ('approved', 'Оплачен'), ('rejected', 'Отклонен'), ('shipped', 'На доставке'), ('delivered', 'Доставлен')], db_index=True, default='pending', max_length=16)),
                ('payme_order_id', models.CharField(blank=True, max_length=32, null=True, unique=True)),
                ('payme_transaction_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('payme_state', models.SmallIntegerField(blank=True, null=True)),
                ('payme_create_time', models.BigIntegerField(blank=True, null=True)),
                ('payme_perform_time', models.BigIntegerField(blank=True, null=True)),
                ('payme_cancel_time', models.BigIntegerField(blank=True, null=True)),
                ('payme_cancel_reason', models.SmallIntegerField(blank=True, null=True)),
                ('click_order_id', models.CharField(blank=True, max_length=32, null=True, unique=True)),
                ('click_trans_id', models.BigIntegerField(blank=True, db_index=True, null=True)),
                ('click_paydoc_id', models.BigIntegerField(blank=True, null=True)),
                ('click_complete_time', models.BigIntegerField(blank=True, null=True)),
                ('click_error', models.IntegerField(blank=True, null=True)),
                ('bonus_awarded', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
