# Link extracted prescriptions and lab reports to their source document

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('clinical', '0001_initial'),
        ('documents', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='prescription',
            name='source_document',
            field=models.ForeignKey(blank=True, help_text='Document this prescription was extracted from', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='prescriptions', to='documents.document'),
        ),
        migrations.AddField(
            model_name='labreport',
            name='source_document',
            field=models.ForeignKey(blank=True, help_text='Document this report was extracted from', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lab_reports', to='documents.document'),
        ),
    ]
