import django.db.models.deletion
from django.db import migrations, models


SCOPE_CHOICES = [("own", "Propios"), ("team", "Equipo"), ("all", "Todos")]


def grant_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("puede_ver", models.BooleanField(default=False)),
        ("puede_crear", models.BooleanField(default=False)),
        ("puede_editar", models.BooleanField(default=False)),
        ("puede_eliminar", models.BooleanField(default=False)),
        ("alcance_ver", models.CharField(choices=SCOPE_CHOICES, default="own", max_length=10)),
        ("alcance_editar", models.CharField(choices=SCOPE_CHOICES, default="own", max_length=10)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("modulo", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="permisos.modulo")),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Modulo",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("codigo", models.SlugField(max_length=100, unique=True)),
                ("nombre", models.CharField(max_length=255)),
                ("categoria", models.CharField(
                    choices=[
                        ("crm", "CRM"),
                        ("finanzas", "Finanzas"),
                        ("rendimiento", "Rendimiento"),
                        ("comunicacion", "Comunicación"),
                        ("features", "Features"),
                        ("admin", "Administración"),
                    ],
                    default="crm",
                    max_length=30,
                )),
                ("orden", models.PositiveIntegerField(default=0)),
                ("es_submenu", models.BooleanField(default=False)),
                ("activo", models.BooleanField(default=True)),
                ("modulo_padre", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="submodulos",
                    to="permisos.modulo",
                )),
            ],
            options={"ordering": ["categoria", "orden", "id"]},
        ),
        migrations.CreateModel(
            name="RolTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("codigo", models.SlugField(max_length=100, unique=True)),
                ("nombre", models.CharField(max_length=255)),
                ("descripcion", models.TextField(blank=True, null=True)),
                ("categoria", models.CharField(default="general", max_length=50)),
                ("icono", models.CharField(blank=True, max_length=100, null=True)),
                ("color", models.CharField(blank=True, max_length=20, null=True)),
                ("es_activo", models.BooleanField(default=True)),
                ("visible_para_tenants", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["nombre"]},
        ),
        migrations.CreateModel(
            name="Rol",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("codigo", models.SlugField(max_length=100)),
                ("nombre", models.CharField(max_length=255)),
                ("es_activo", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="roles",
                    to="tenants.tenant",
                )),
                ("template", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="roles",
                    to="permisos.roltemplate",
                )),
            ],
            options={"ordering": ["tenant", "nombre"]},
        ),
        migrations.AddConstraint(
            model_name="rol",
            constraint=models.UniqueConstraint(fields=("tenant", "codigo"), name="uniq_rol_tenant_codigo"),
        ),
        migrations.CreateModel(
            name="TemplateModulo",
            fields=grant_fields() + [
                ("permisos_campos", models.JSONField(blank=True, default=dict)),
                ("template", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="grants",
                    to="permisos.roltemplate",
                )),
            ],
        ),
        migrations.AddConstraint(
            model_name="templatemodulo",
            constraint=models.UniqueConstraint(fields=("template", "modulo"), name="uniq_template_modulo"),
        ),
        migrations.CreateModel(
            name="RolModulo",
            fields=grant_fields() + [
                ("rol", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="grants",
                    to="permisos.rol",
                )),
            ],
        ),
        migrations.AddConstraint(
            model_name="rolmodulo",
            constraint=models.UniqueConstraint(fields=("rol", "modulo"), name="uniq_rol_modulo"),
        ),
    ]
