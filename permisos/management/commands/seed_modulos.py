from django.core.management.base import BaseCommand
from django.db import transaction

from permisos.catalog import MODULOS
from permisos.models import Modulo


class Command(BaseCommand):
    help = "Crea/actualiza el catálogo de módulos (permisos.catalog.MODULOS)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--deactivate-missing",
            action="store_true",
            help="Marca como inactivos los módulos que ya no están en el catálogo.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        created = updated = 0

        # parents first so children can reference them
        ordered = sorted(MODULOS, key=lambda m: m[4] is not None)
        for codigo, nombre, categoria, orden, padre in ordered:
            modulo_padre = Modulo.objects.get(codigo=padre) if padre else None
            _, was_created = Modulo.objects.update_or_create(
                codigo=codigo,
                defaults={
                    "nombre": nombre,
                    "categoria": categoria,
                    "orden": orden,
                    "es_submenu": modulo_padre is not None,
                    "modulo_padre": modulo_padre,
                    "activo": True,
                },
            )
            if was_created:
                created += 1
            else:
                updated += 1

        self.stdout.write(self.style.SUCCESS(f"Módulos: {created} nuevos, {updated} actualizados."))

        if options["deactivate_missing"]:
            codigos = [m[0] for m in MODULOS]
            n = Modulo.objects.exclude(codigo__in=codigos).filter(activo=True).update(activo=False)
            self.stdout.write(self.style.WARNING(f"Módulos desactivados: {n}"))
