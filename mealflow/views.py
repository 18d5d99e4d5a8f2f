from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services, trays
from .intake import parse_meal_request, parse_patient_create, parse_patient_update
from .serializers import (
    serialize_meal_request,
    serialize_patient,
    serialize_recipe,
    serialize_request_item,
    serialize_tray,
)
from .storage import open_storage


@api_view(['GET'])
def health(request):
    """GET /api/health/"""
    return Response({'status': 'ok'})


class PatientListCreateView(APIView):
    """GET /api/patients/ - list patients; POST - admit a patient"""

    def get(self, request):
        with open_storage() as storage:
            patients = services.list_patients(storage)
        return Response([serialize_patient(p) for p in patients])

    def post(self, request):
        fields = parse_patient_create(request.data)
        with open_storage() as storage:
            patient = services.create_patient(storage, fields)
        return Response(serialize_patient(patient), status=status.HTTP_201_CREATED)


class PatientDetailView(APIView):
    """PATCH /api/patients/<patient_id>/ - partial update of allow-listed fields"""

    def patch(self, request, patient_id):
        changes = parse_patient_update(request.data)
        with open_storage() as storage:
            patient = services.update_patient(storage, str(patient_id), changes)
        return Response(serialize_patient(patient))


class RecipeListView(APIView):
    """GET /api/recipes/"""

    def get(self, request):
        with open_storage() as storage:
            recipes = services.list_recipes(storage)
        return Response([serialize_recipe(r) for r in recipes])


class MealRequestListCreateView(APIView):
    """
    GET  /api/meal-requests/ - requests with their patient, newest first
    POST /api/meal-requests/ - validate a selection and provision its tray

    POST answers 201 with the finalized request, 404 for an unknown patient,
    422 with the newline-joined violations when the selection is unsafe.
    """

    def get(self, request):
        with open_storage() as storage:
            meal_requests = services.list_meal_requests(storage)
        return Response([serialize_meal_request(r) for r in meal_requests])

    def post(self, request):
        draft = parse_meal_request(request.data)
        with open_storage() as storage:
            meal_request = services.create_meal_request(storage, draft.patient_id, draft.recipe_ids)
        return Response(serialize_meal_request(meal_request), status=status.HTTP_201_CREATED)


class RequestItemListView(APIView):
    """GET /api/meal-requests/<request_id>/items/"""

    def get(self, request, request_id):
        with open_storage() as storage:
            items = services.list_request_items(storage, str(request_id))
        return Response([serialize_request_item(i) for i in items])


class TrayListView(APIView):
    """GET /api/trays/ - trays with request and patient, newest first"""

    def get(self, request):
        with open_storage() as storage:
            tray_list = trays.list_trays(storage)
        return Response([serialize_tray(t) for t in tray_list])


class TrayAdvanceView(APIView):
    """PATCH /api/trays/<tray_id>/advance/ - move the tray one lifecycle step"""

    def patch(self, request, tray_id):
        with open_storage() as storage:
            tray = trays.advance_tray(storage, str(tray_id))
        return Response(serialize_tray(tray))
