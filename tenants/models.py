from django.db import models


class Tenant(models.Model):
    """A CRM customer account. Users and roles always belong to one tenant."""

    nombre = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    activo = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nombre"]

    def __str__(self):
        return self.nombre
