# permisos/urls.py
from rest_framework.routers import DefaultRouter

from .views import ModuloViewSet, RolTemplateViewSet

router = DefaultRouter()
router.register(r'templates', RolTemplateViewSet, basename='templates')
router.register(r'modulos', ModuloViewSet, basename='modulos')

urlpatterns = router.urls
