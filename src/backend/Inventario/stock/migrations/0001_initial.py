import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Aula',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nombre', models.CharField(help_text='Classroom name', max_length=100, unique=True, verbose_name='Name')),
                ('descripcion', models.CharField(blank=True, max_length=250, verbose_name='Description')),
            ],
            options={
                'verbose_name': 'Classroom',
                'verbose_name_plural': 'Classrooms',
                'ordering': ['nombre'],
            },
        ),
        migrations.CreateModel(
            name='Item',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nombre', models.CharField(max_length=120, verbose_name='Name')),
                ('descripcion', models.CharField(blank=True, max_length=250, verbose_name='Description')),
                ('cantidad_disponible', models.PositiveIntegerField(blank=True, help_text='Units currently available for loan', verbose_name='Available Quantity')),
                ('cantidad_total_stock', models.PositiveIntegerField(default=0, help_text='Total units owned', validators=[django.core.validators.MinValueValidator(0)], verbose_name='Total Stock')),
            ],
            options={
                'verbose_name': 'Item',
                'verbose_name_plural': 'Items',
                'ordering': ['nombre'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('cantidad_disponible__gte', 0)), name='item_disponible_not_negative'),
                    models.CheckConstraint(condition=models.Q(('cantidad_disponible__lte', models.F('cantidad_total_stock'))), name='item_disponible_within_total'),
                ],
            },
        ),
    ]
