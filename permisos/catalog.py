# permisos/catalog.py
# Module catalog seeded by `manage.py seed_modulos`.
# (codigo, nombre, categoria, orden, parent codigo or None)

MODULOS = [
    # --- CRM ---
    ("contactos",   "Contactos",   "crm", 1, None),
    ("solicitudes", "Solicitudes", "crm", 2, None),
    ("propiedades", "Propiedades", "crm", 3, None),
    ("actividades", "Actividades", "crm", 4, None),
    ("propuestas",  "Propuestas",  "crm", 5, None),
    ("contenido",   "Contenido",   "crm", 6, None),

    # --- Finanzas ---
    ("finanzas",            "Finanzas",   "finanzas", 1, None),
    ("finanzas-ventas",     "Ventas",     "finanzas", 1, "finanzas"),
    ("finanzas-comisiones", "Comisiones", "finanzas", 2, "finanzas"),

    # --- Rendimiento ---
    ("metas",    "Metas",    "rendimiento", 1, None),
    ("reportes", "Reportes", "rendimiento", 2, None),

    # --- Comunicación ---
    ("marketing", "Marketing", "comunicacion", 1, None),

    # --- Administración ---
    ("equipos",       "Equipos",       "admin", 1, None),
    ("oficinas",      "Oficinas",      "admin", 2, None),
    ("usuarios",      "Usuarios",      "admin", 3, None),
    ("configuracion", "Configuración", "admin", 4, None),
]
