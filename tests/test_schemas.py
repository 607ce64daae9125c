"""
Tests for the Pydantic schemas.

Most schema behavior is covered through the services. These tests pin
down normalization and the validators that do not need a database.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from petcare_core.models import IdentificationType, PetGender, PqrType, ServiceSegment
from petcare_core.schemas.appointment import AppointmentCreate, AppointmentUpdate
from petcare_core.schemas.client import ClientCreate, ClientUpdate
from petcare_core.schemas.hotel_stay import HotelStayUpdate
from petcare_core.schemas.pet import PetCreate, PetUpdate, PhotoUpload
from petcare_core.schemas.pqr import PqrCreate
from petcare_core.schemas.service import PriceUpdate, ServiceFilters
from petcare_core.utils.datetime_utils import get_current_date, get_current_utc


class TestClientSchemas:
    """Test client create and update validation."""

    def _data(self, **overrides):
        data = {
            "name": "  Juan   Perez ",
            "email": "Juan@Example.COM",
            "phone": "+57 (300) 123-4567",
            "address": "Calle 10 # 5-20",
            "identification_number": " ab-123 ",
        }
        data.update(overrides)
        return data

    def test_normalization(self):
        client = ClientCreate(**self._data())

        assert client.name == "Juan Perez"
        assert client.email == "juan@example.com"
        assert client.identification_type == IdentificationType.CC
        assert client.identification_number == "AB-123"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("phone", "call me"),
            ("identification_number", "12"),
            ("identification_number", "12 34 56"),
            ("email", "not-an-email"),
            ("name", "   "),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            ClientCreate(**self._data(**{field: value}))

    def test_unknown_document_type(self):
        with pytest.raises(ValidationError):
            ClientCreate(**self._data(identification_type="DNI"))

    def test_update_needs_a_field(self):
        with pytest.raises(ValidationError, match="At least one field"):
            ClientUpdate()

    def test_update_changes_are_only_given_fields(self):
        update = ClientUpdate(phone="3001112233")

        assert update.changes() == {"phone": "3001112233"}


class TestPetSchemas:
    """Test pet and photo validation."""

    def test_species_is_lowercased(self):
        pet = PetCreate(
            client_id=uuid4(),
            name="Toby",
            species=" PERRO ",
            breed="Labrador",
            gender="male",
            weight="30.5",
        )

        assert pet.species == "perro"
        assert pet.gender == PetGender.MALE
        assert pet.weight == Decimal("30.5")

    def test_birth_date_today_is_rejected(self):
        with pytest.raises(ValidationError, match="Birth date must be in the past"):
            PetUpdate(birth_date=get_current_date())

    @pytest.mark.parametrize("weight", ["-1", "1000", "2.555"])
    def test_weight_bounds(self, weight):
        with pytest.raises(ValidationError):
            PetUpdate(weight=weight)

    def test_photo_upload(self):
        photo = PhotoUpload(filename="dir/Luna.JPG", content_type="IMAGE/JPEG", content=b"abc")

        assert photo.filename == "Luna.JPG"
        assert photo.extension == "jpg"
        assert photo.content_type == "image/jpeg"
        assert photo.size_kb == pytest.approx(3 / 1024)

    @pytest.mark.parametrize(
        "filename, content_type, content",
        [
            ("luna.bmp", "image/bmp", b"abc"),
            ("luna.png", "text/plain", b"abc"),
            ("luna.png", "image/png", b""),
        ],
    )
    def test_invalid_photo(self, filename, content_type, content):
        with pytest.raises(ValidationError):
            PhotoUpload(filename=filename, content_type=content_type, content=content)


class TestAppointmentSchemas:
    """Test appointment date handling."""

    def _data(self, when):
        return {
            "client_id": uuid4(),
            "pet_id": uuid4(),
            "service_id": uuid4(),
            "user_id": uuid4(),
            "appointment_date": when,
        }

    def test_offset_dates_are_normalized_to_utc(self):
        bogota = timezone(timedelta(hours=-5))
        local = (get_current_utc() + timedelta(days=2)).astimezone(bogota)

        appointment = AppointmentCreate(**self._data(local))

        assert appointment.appointment_date.utcoffset() == timedelta(0)
        assert appointment.appointment_date == local

    def test_past_date_is_rejected_on_create(self):
        with pytest.raises(ValidationError, match="must be in the future"):
            AppointmentCreate(**self._data(get_current_utc() - timedelta(minutes=5)))

    def test_update_accepts_past_dates(self):
        past = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)

        assert AppointmentUpdate(appointment_date=past).appointment_date == past

    def test_update_rejects_naive_dates(self):
        with pytest.raises(ValidationError, match="timezone-aware"):
            AppointmentUpdate(appointment_date=datetime(2030, 1, 10, 9, 0))


class TestOtherSchemas:
    """Test hotel, catalog and PQR schemas."""

    def test_hotel_update_checks_both_dates(self):
        with pytest.raises(ValidationError, match="Check-out date must be after"):
            HotelStayUpdate(check_in_date=date(2030, 5, 10), check_out_date=date(2030, 5, 10))

    def test_hotel_update_single_date_is_left_to_service(self):
        update = HotelStayUpdate(check_out_date=date(2030, 5, 10))

        assert update.changes() == {"check_out_date": date(2030, 5, 10)}

    def test_price_update_precision(self):
        assert PriceUpdate(price="1250.50").price == Decimal("1250.50")

        with pytest.raises(ValidationError):
            PriceUpdate(price="-0.01")

    def test_service_filters_parse_segment(self):
        assert ServiceFilters(segment="spa").segment == ServiceSegment.SPA

    def test_pqr_create(self):
        pqr = PqrCreate(
            client_name=" Ana ",
            client_email="ANA@example.com",
            type="peticion",
            subject=" Schedule ",
            description="Open on holidays?",
        )

        assert pqr.client_name == "Ana"
        assert pqr.client_email == "ana@example.com"
        assert pqr.type == PqrType.PETICION
        assert pqr.subject == "Schedule"
