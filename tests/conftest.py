"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.
"""
import pytest
from datetime import date
from django.test import Client
from django.utils import timezone

import factory
from loyalty.models import (
    BenefitStatus,
    ClientRecord,
    Patient,
    PendingRegistration,
    Redemption,
    Service,
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class ClientRecordFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ClientRecord

    order_number = factory.Sequence(lambda n: f'ORD-{1000 + n}')
    billing_name = 'Maria Santos'
    email = 'maria@example.com'
    billing_phone = '555-123-4567'
    created_label = 'January 2, 2024'
    has_registered = False


class PatientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Patient

    name = 'Juan Dela Cruz'
    email = 'juan@example.com'
    phone = '555-987-6543'
    membership_id = factory.Sequence(lambda n: f'MEM-{5000 + n}')
    loyalty_points = 0
    member_since = date(2024, 1, 15)


class BenefitStatusFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = BenefitStatus

    patient = factory.SubFactory(PatientFactory)
    kind = 'oralProphylaxis'
    total = 2
    remaining = 2
    expiry_date = date(2099, 12, 31)


class ServiceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Service

    patient = factory.SubFactory(PatientFactory)
    name = 'Dental Cleaning'
    category = 'preventive'
    cost = '1500.00'
    date = date(2024, 2, 1)


class PendingRegistrationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PendingRegistration

    full_name = 'Ana Reyes'
    email = 'ana@example.com'
    phone = '555-222-3333'
    date_of_birth = date(1992, 6, 30)
    street = '12 Rizal St'
    city = 'Makati'
    state = 'Metro Manila'
    zip_code = '1200'
    emergency_contact = 'Jose Reyes'
    emergency_phone = '555-444-5555'
    password = 'hashed'
    status = 'pending'


class RedemptionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Redemption

    patient = factory.SubFactory(PatientFactory)
    dentist_id = 'dentist-1'
    service_name = 'Oral Prophylaxis'
    benefit_type = 'oralProphylaxis'
    status = 'pending'
    redemption_date = factory.LazyFunction(timezone.now)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def fast_password_hasher(settings):
    """测试里用 MD5，避免 PBKDF2 拖慢每个注册用例。"""
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Django test client for integration tests."""
    return Client()


@pytest.fixture
def patient_with_benefits():
    """一位新注册的 Bronze 患者，带全部 4 种福利（2 / 1 / 3 / 2）。"""
    patient = PatientFactory()
    for kind, total in [
        ('oralProphylaxis', 2),
        ('toothExtraction', 1),
        ('lightCureFilling', 3),
        ('fluorideTreatment', 2),
    ]:
        BenefitStatusFactory(patient=patient, kind=kind, total=total, remaining=total)
    return patient


@pytest.fixture
def sample_new_registration_payload():
    """Minimal valid payload for POST /api/registrations/."""
    return {
        'fullName': 'Ana Reyes',
        'email': 'ana@example.com',
        'phone': '555-222-3333',
        'dateOfBirth': '1992-06-30',
        'address': {
            'street': '12 Rizal St',
            'city': 'Makati',
            'state': 'Metro Manila',
            'zipCode': '1200',
        },
        'emergencyContact': 'Jose Reyes',
        'emergencyPhone': '555-444-5555',
        'password': 'secret1',
        'confirmPassword': 'secret1',
    }
