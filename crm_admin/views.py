# crm_admin/views.py
from django.http import JsonResponse


def health(request):
    return JsonResponse({"status": "ok"})
