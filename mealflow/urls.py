from django.urls import path
from .views import (
    MealRequestListCreateView,
    PatientDetailView,
    PatientListCreateView,
    RecipeListView,
    RequestItemListView,
    TrayAdvanceView,
    TrayListView,
    health,
)

urlpatterns = [
    path('health/', health, name='health'),
    path('patients/', PatientListCreateView.as_view(), name='patient-list'),
    path('patients/<uuid:patient_id>/', PatientDetailView.as_view(), name='patient-detail'),
    path('recipes/', RecipeListView.as_view(), name='recipe-list'),
    path('meal-requests/', MealRequestListCreateView.as_view(), name='meal-request-list'),
    path('meal-requests/<uuid:request_id>/items/', RequestItemListView.as_view(), name='request-item-list'),
    path('trays/', TrayListView.as_view(), name='tray-list'),
    path('trays/<uuid:tray_id>/advance/', TrayAdvanceView.as_view(), name='tray-advance'),
]
