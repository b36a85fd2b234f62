from django.urls import path
from .views import (
    ClientRegisterView,
    PatientDetailView,
    PatientPointsView,
    PatientSearchView,
    RedemptionCancelView,
    RedemptionCompleteView,
    RedemptionListCreateView,
    RegistrationApproveView,
    RegistrationListCreateView,
    RegistrationRejectView,
    TierCatalogView,
)

urlpatterns = [
    path('tiers/', TierCatalogView.as_view(), name='tier-catalog'),
    path('clients/register/', ClientRegisterView.as_view(), name='client-register'),
    path('registrations/', RegistrationListCreateView.as_view(), name='registration-list'),
    path('registrations/<uuid:registration_id>/approve/', RegistrationApproveView.as_view(), name='registration-approve'),
    path('registrations/<uuid:registration_id>/reject/', RegistrationRejectView.as_view(), name='registration-reject'),
    path('patients/', PatientSearchView.as_view(), name='patient-search'),
    path('patients/<uuid:patient_id>/', PatientDetailView.as_view(), name='patient-detail'),
    path('patients/<uuid:patient_id>/points/', PatientPointsView.as_view(), name='patient-points'),
    path('redemptions/', RedemptionListCreateView.as_view(), name='redemption-list'),
    path('redemptions/<uuid:redemption_id>/complete/', RedemptionCompleteView.as_view(), name='redemption-complete'),
    path('redemptions/<uuid:redemption_id>/cancel/', RedemptionCancelView.as_view(), name='redemption-cancel'),
]
