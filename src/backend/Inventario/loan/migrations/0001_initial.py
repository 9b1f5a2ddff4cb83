import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('stock', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Loan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('cantidad_prestamo', models.PositiveIntegerField(help_text='Number of units requested', validators=[django.core.validators.MinValueValidator(1)], verbose_name='Quantity')),
                ('estado', models.CharField(choices=[('Pendiente', 'Pending'), ('Aprobado', 'Approved'), ('Rechazado', 'Rejected'), ('Aplazado', 'Deferred'), ('Devuelto', 'Returned')], default='Pendiente', max_length=20, verbose_name='Status')),
                ('fecha_prestamo', models.DateTimeField(blank=True, null=True, verbose_name='Loan Date')),
                ('fecha_estimada', models.DateField(blank=True, help_text='Expected return date', null=True, verbose_name='Estimated Return Date')),
                ('fecha_retorno', models.DateTimeField(blank=True, null=True, verbose_name='Return Date')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated')),
                ('aula', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='prestamos', to='stock.aula', verbose_name='Classroom')),
                ('item', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='prestamos', to='stock.item', verbose_name='Item')),
                ('usuario', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prestamos', to=settings.AUTH_USER_MODEL, verbose_name='Borrower')),
            ],
            options={
                'verbose_name': 'Loan',
                'verbose_name_plural': 'Loans',
                'ordering': ['-created_at', '-pk'],
            },
        ),
    ]
