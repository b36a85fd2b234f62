"""
Unit tests for intake parsers and validation.

不需要数据库：parsers 只做取值，validation 只看 dataclass。
"""
import pytest

from loyalty.exceptions import ValidationError
from loyalty.intake import (
    AddressData,
    ClientRegistrationData,
    RedemptionRequestData,
    ensure_object,
    parse_client_registration,
    parse_int,
    parse_new_registration,
    parse_redemption_request,
    parse_text,
    validate_client_registration,
    validate_new_registration,
    validate_redemption_request,
)


def error_fields(exc_info):
    return [e['field'] for e in exc_info.value.detail['errors']]


# -------------------------------------------------------------------
# Parsers
# -------------------------------------------------------------------

class TestParseClientRegistration:

    def test_camel_case(self):
        data = parse_client_registration({
            'fullName': '  Maria Santos ',
            'controlNumber': 'ORD-1001',
            'password': 'abcd',
            'confirmPassword': 'abcd',
        })
        assert data == ClientRegistrationData('Maria Santos', 'ORD-1001', 'abcd', 'abcd')

    def test_snake_case_without_confirmation(self):
        data = parse_client_registration({'full_name': 'Maria', 'control_number': 'x', 'password': 'abcd'})
        assert data.full_name == 'Maria'
        assert data.confirm_password is None

    def test_password_not_stripped(self):
        data = parse_client_registration({'fullName': 'M', 'controlNumber': 'x', 'password': ' ab '})
        assert data.password == ' ab '

    @pytest.mark.parametrize('raw', [None, [], 'text', 42])
    def test_non_object_rejected(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_client_registration(raw)
        assert exc_info.value.code == 'INVALID_PAYLOAD'


class TestParseNewRegistration:

    def test_nested_address(self, sample_new_registration_payload):
        data = parse_new_registration(sample_new_registration_payload)

        assert data.full_name == 'Ana Reyes'
        assert data.date_of_birth == '1992-06-30'
        assert data.address == AddressData('12 Rizal St', 'Makati', 'Metro Manila', '1200', 'Philippines')
        assert data.dentist_id == ''

    def test_missing_address_is_blank(self):
        data = parse_new_registration({'fullName': 'Ana', 'address': 'somewhere'})
        assert data.address == AddressData()


class TestParseRedemptionRequest:

    def test_fields(self):
        data = parse_redemption_request({
            'patientId': 'p-1',
            'dentistId': 'd-1',
            'benefitType': 'toothExtraction',
            'pointsUsed': '5',
            'notes': 'left molar',
        })
        assert data == RedemptionRequestData(
            patient_id='p-1', dentist_id='d-1', benefit_type='toothExtraction',
            points_used=5, notes='left molar',
        )

    def test_non_numeric_points(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_redemption_request({'pointsUsed': 'lots'})
        assert error_fields(exc_info) == ['points_used']


# -------------------------------------------------------------------
# Validation
# -------------------------------------------------------------------

class TestValidateClientRegistration:

    def test_valid(self):
        validate_client_registration(ClientRegistrationData('Maria', 'ORD-1', 'abcd'))

    def test_blank_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_client_registration(ClientRegistrationData(' ', '', ''))
        assert error_fields(exc_info) == ['full_name', 'control_number', 'password']

    def test_password_minimum_is_four(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_client_registration(ClientRegistrationData('Maria', 'ORD-1', 'abc'))
        assert 'at least 4' in exc_info.value.detail['errors'][0]['message']


class TestValidateNewRegistration:

    def test_valid(self, sample_new_registration_payload):
        validate_new_registration(parse_new_registration(sample_new_registration_payload))

    def test_confirmation_required(self, sample_new_registration_payload):
        del sample_new_registration_payload['confirmPassword']
        with pytest.raises(ValidationError) as exc_info:
            validate_new_registration(parse_new_registration(sample_new_registration_payload))
        assert error_fields(exc_info) == ['confirm_password']

    def test_password_minimum_is_six(self, sample_new_registration_payload):
        sample_new_registration_payload['password'] = 'abcde'
        sample_new_registration_payload['confirmPassword'] = 'abcde'
        with pytest.raises(ValidationError) as exc_info:
            validate_new_registration(parse_new_registration(sample_new_registration_payload))
        assert error_fields(exc_info) == ['password']

    @pytest.mark.parametrize('phone', ['5552223333', '(555) 222-3333', '555.222.3333'])
    def test_phone_formats_accepted(self, sample_new_registration_payload, phone):
        sample_new_registration_payload['phone'] = phone
        validate_new_registration(parse_new_registration(sample_new_registration_payload))

    def test_bad_date_of_birth(self, sample_new_registration_payload):
        sample_new_registration_payload['dateOfBirth'] = '30/06/1992'
        with pytest.raises(ValidationError) as exc_info:
            validate_new_registration(parse_new_registration(sample_new_registration_payload))
        assert error_fields(exc_info) == ['date_of_birth']


class TestValidateRedemptionRequest:

    def test_valid(self):
        validate_redemption_request(RedemptionRequestData('p', 'd', 'lightCureFilling'))

    def test_all_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_redemption_request(RedemptionRequestData('', '', 'whitening', points_used=-1))
        assert error_fields(exc_info) == ['patient_id', 'dentist_id', 'benefit_type', 'points_used']


class TestScalarParsers:

    @pytest.mark.parametrize('value, expected', [(150, 150), (0, 0), (-3, -3), ('42', 42), (' 7 ', 7)])
    def test_parse_int_accepts_integers(self, value, expected):
        assert parse_int(value, 'points') == expected

    @pytest.mark.parametrize('value', [1.9, 2.0, True, False, None, 'many', '1.5', [], {}])
    def test_parse_int_rejects_everything_else(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_int(value, 'points')
        assert error_fields(exc_info) == ['points']

    def test_parse_text(self):
        assert parse_text('  Refund ', 'reason') == 'Refund'
        assert parse_text(None, 'reason') == ''

    @pytest.mark.parametrize('value', [123, ['a'], {'a': 1}, True])
    def test_parse_text_rejects_non_strings(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_text(value, 'reason')
        assert error_fields(exc_info) == ['reason']

    def test_float_points_used_not_truncated(self):
        with pytest.raises(ValidationError):
            parse_redemption_request({'pointsUsed': 1.9})

    def test_ensure_object(self):
        assert ensure_object({'a': 1}) == {'a': 1}
        with pytest.raises(ValidationError) as exc_info:
            ensure_object(['a'])
        assert exc_info.value.code == 'INVALID_PAYLOAD'
