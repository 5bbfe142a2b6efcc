"""
Tests for weekly schedule templates, date materialization and availability.
"""
from datetime import date, time, timezone

import pytest

from hospital_api.appointments import service as appointment_service
from hospital_api.exceptions import ConflictError, NotFoundError, ValidationError
from hospital_api.schedules import service
from hospital_api.schedules.models import DoctorSchedule, ScheduleDateStatus, WorkDay
from hospital_api.schedules.schemas import ScheduleUpdate

from .conftest import MONDAY, TUESDAY


def book(db, patient, schedule, specialty, on_date=MONDAY):
    return appointment_service.book_appointment(
        db, patient.id, specialty.id, on_date, schedule_id=schedule.id
    )


class TestWeeklyTemplate:
    def test_create_valid_template(self, db, doctor):
        schedule = service.create_weekly_template(
            db, doctor.id, WorkDay.TUESDAY, time(14, 0), time(18, 0),
            break_start=time(16, 0), break_end=time(16, 30), max_appointments=6
        )
        assert schedule.id is not None
        assert schedule.work_day == WorkDay.TUESDAY
        assert schedule.max_appointments == 6

    @pytest.mark.parametrize("start, end", [
        (time(12, 0), time(9, 0)),
        (time(9, 0), time(9, 0)),
    ])
    def test_start_must_precede_end(self, db, doctor, start, end):
        with pytest.raises(ValidationError):
            service.create_weekly_template(db, doctor.id, WorkDay.MONDAY, start, end, max_appointments=1)

    @pytest.mark.parametrize("break_start, break_end", [
        (time(10, 0), None),
        (None, time(10, 0)),
        (time(11, 0), time(10, 0)),
        (time(8, 30), time(9, 30)),
        (time(11, 30), time(12, 30)),
    ])
    def test_break_must_be_complete_ordered_and_inside_window(self, db, doctor, break_start, break_end):
        with pytest.raises(ValidationError):
            service.create_weekly_template(
                db, doctor.id, WorkDay.MONDAY, time(9, 0), time(12, 0),
                break_start=break_start, break_end=break_end, max_appointments=1
            )

    @pytest.mark.parametrize("max_appointments", [0, -3])
    def test_capacity_must_be_positive(self, db, doctor, max_appointments):
        with pytest.raises(ValidationError):
            service.create_weekly_template(
                db, doctor.id, WorkDay.MONDAY, time(9, 0), time(12, 0), max_appointments=max_appointments
            )
        assert db.query(DoctorSchedule).count() == 0

    def test_unknown_doctor(self, db):
        with pytest.raises(NotFoundError):
            service.create_weekly_template(db, 404, WorkDay.MONDAY, time(9, 0), time(12, 0), max_appointments=1)

    def test_times_with_offset_rejected(self, db, doctor):
        with pytest.raises(ValidationError):
            service.create_weekly_template(
                db, doctor.id, WorkDay.MONDAY, time(9, 0, tzinfo=timezone.utc), time(12, 0), max_appointments=1
            )
        assert db.query(DoctorSchedule).count() == 0

    def test_overlapping_template_rejected(self, db, schedule):
        with pytest.raises(ConflictError):
            service.create_weekly_template(
                db, schedule.doctor_id, WorkDay.MONDAY, time(11, 0), time(13, 0), max_appointments=1
            )

    def test_adjacent_and_other_day_templates_allowed(self, db, schedule):
        service.create_weekly_template(
            db, schedule.doctor_id, WorkDay.MONDAY, time(12, 0), time(14, 0), max_appointments=1
        )
        service.create_weekly_template(
            db, schedule.doctor_id, WorkDay.TUESDAY, time(9, 0), time(12, 0), max_appointments=1
        )
        assert [s.work_day for s in service.list_doctor_schedules(db, schedule.doctor_id)] == [
            WorkDay.MONDAY, WorkDay.MONDAY, WorkDay.TUESDAY
        ]


class TestUpdateAndDelete:
    def test_update_window(self, db, schedule):
        updated = service.update_schedule(db, schedule.id, ScheduleUpdate(end_time=time(13, 0), max_appointments=4))
        assert updated.end_time == time(13, 0)
        assert updated.max_appointments == 4

    def test_update_revalidates_merged_window(self, db, schedule):
        with pytest.raises(ValidationError):
            service.update_schedule(db, schedule.id, ScheduleUpdate(start_time=time(12, 30)))

    def test_capacity_cannot_drop_below_bookings(self, db, schedule, schedule_date, make_patient, specialty):
        book(db, make_patient(), schedule, specialty)
        book(db, make_patient(), schedule, specialty)
        with pytest.raises(ValidationError):
            service.update_schedule(db, schedule.id, ScheduleUpdate(max_appointments=1))

    def test_work_day_fixed_once_materialized(self, db, schedule, schedule_date):
        with pytest.raises(ValidationError):
            service.update_schedule(db, schedule.id, ScheduleUpdate(work_day=WorkDay.FRIDAY))

    @pytest.mark.parametrize("field", ["work_day", "start_time", "end_time", "max_appointments"])
    def test_required_fields_cannot_be_cleared(self, db, schedule, field):
        with pytest.raises(ValidationError):
            service.update_schedule(db, schedule.id, ScheduleUpdate(**{field: None}))
        db.refresh(schedule)
        assert schedule.work_day == WorkDay.MONDAY
        assert schedule.start_time == time(9, 0)

    def test_break_can_be_cleared(self, db, doctor):
        schedule = service.create_weekly_template(
            db, doctor.id, WorkDay.TUESDAY, time(14, 0), time(18, 0),
            break_start=time(16, 0), break_end=time(16, 30), max_appointments=2
        )
        updated = service.update_schedule(db, schedule.id, ScheduleUpdate(break_start=None, break_end=None))
        assert updated.break_start is None
        assert updated.break_end is None

    def test_update_rejects_offset_time(self, db, schedule):
        with pytest.raises(ValidationError):
            service.update_schedule(db, schedule.id, ScheduleUpdate(end_time=time(13, 0, tzinfo=timezone.utc)))

    def test_delete_removes_dates(self, db, schedule, schedule_date):
        service.delete_schedule(db, schedule.id)
        with pytest.raises(NotFoundError):
            service.get_schedule(db, schedule.id)
        assert service.find_schedule_date(db, schedule.id, MONDAY) is None

    def test_delete_refused_with_appointments(self, db, schedule, schedule_date, patient, specialty):
        appointment = book(db, patient, schedule, specialty)
        appointment_service.cancel_appointment(db, appointment.id)
        with pytest.raises(ConflictError):
            service.delete_schedule(db, schedule.id)


class TestMaterialization:
    def test_materialize_date(self, db, schedule):
        schedule_date = service.materialize_date(db, schedule.id, MONDAY, notes="Ward B")
        assert schedule_date.status == ScheduleDateStatus.ACTIVE
        assert schedule_date.doctor_id == schedule.doctor_id
        assert schedule_date.max_appointments == 2

    def test_duplicate_date_rejected(self, db, schedule, schedule_date):
        with pytest.raises(ConflictError):
            service.materialize_date(db, schedule.id, MONDAY)
        assert len(service.list_schedule_dates(db, schedule.id)) == 1

    def test_update_flag_changes_existing_date(self, db, schedule, schedule_date):
        updated = service.materialize_date(
            db, schedule.id, MONDAY, status=ScheduleDateStatus.HOLIDAY, notes="Bank holiday", update=True
        )
        assert updated.id == schedule_date.id
        assert updated.status == ScheduleDateStatus.HOLIDAY
        assert updated.notes == "Bank holiday"

    def test_date_must_match_work_day(self, db, schedule):
        with pytest.raises(ValidationError):
            service.materialize_date(db, schedule.id, TUESDAY)

    def test_unknown_schedule(self, db):
        with pytest.raises(NotFoundError):
            service.materialize_date(db, 404, MONDAY)

    def test_materialize_range_skips_existing(self, db, schedule, schedule_date):
        created = service.materialize_range(db, schedule.id, date(2024, 6, 1), date(2024, 6, 30))
        assert [d.date for d in created] == [date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24)]
        assert len(service.list_schedule_dates(db, schedule.id)) == 4

    def test_materialize_range_rejects_inverted_range(self, db, schedule):
        with pytest.raises(ValidationError):
            service.materialize_range(db, schedule.id, date(2024, 6, 30), date(2024, 6, 1))

    def test_find_active_dates_skips_closed_dates(self, db, schedule):
        service.materialize_range(db, schedule.id, date(2024, 6, 1), date(2024, 6, 30))
        service.materialize_date(db, schedule.id, date(2024, 6, 17), status=ScheduleDateStatus.VACATION, update=True)
        active = service.find_active_dates(db, schedule.doctor_id, date(2024, 6, 1), date(2024, 6, 30))
        assert [d.date for d in active] == [date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 24)]

    def test_search_by_notes_is_case_insensitive(self, db, schedule):
        service.materialize_date(db, schedule.id, MONDAY, notes="Covering for Dr. House")
        service.materialize_date(db, schedule.id, date(2024, 6, 10), notes="Regular clinic")
        found = service.search_schedule_dates_by_notes(db, "covering")
        assert [d.date for d in found] == [MONDAY]


class TestAvailability:
    def test_slots_report_remaining_capacity(self, db, schedule, schedule_date, patient, specialty):
        book(db, patient, schedule, specialty)
        slots = service.list_available_slots(db, schedule.doctor_id, MONDAY)
        assert len(slots) == 1
        assert slots[0].schedule_id == schedule.id
        assert slots[0].booked == 1
        assert slots[0].remaining == 1

    def test_full_date_is_not_listed(self, db, schedule, schedule_date, make_patient, specialty):
        book(db, make_patient(), schedule, specialty)
        book(db, make_patient(), schedule, specialty)
        assert service.list_available_slots(db, schedule.doctor_id, MONDAY) == []
        assert service.is_doctor_available(db, schedule.doctor_id, MONDAY) is False

    def test_cancelled_appointments_free_capacity(self, db, schedule, schedule_date, make_patient, specialty):
        first = book(db, make_patient(), schedule, specialty)
        book(db, make_patient(), schedule, specialty)
        appointment_service.cancel_appointment(db, first.id)
        assert service.count_non_cancelled_appointments(db, schedule_date.id) == 1
        assert service.is_doctor_available(db, schedule.doctor_id, MONDAY) is True

    @pytest.mark.parametrize("status", [
        ScheduleDateStatus.INACTIVE, ScheduleDateStatus.VACATION, ScheduleDateStatus.HOLIDAY
    ])
    def test_closed_dates_have_no_slots(self, db, schedule, status):
        service.materialize_date(db, schedule.id, MONDAY, status=status)
        assert service.list_available_slots(db, schedule.doctor_id, MONDAY) == []

    def test_unmaterialized_date_has_no_slots(self, db, schedule):
        assert service.is_doctor_available(db, schedule.doctor_id, MONDAY) is False

    def test_slots_ordered_by_start_time(self, db, schedule, schedule_date):
        early = service.create_weekly_template(
            db, schedule.doctor_id, WorkDay.MONDAY, time(7, 0), time(8, 0), max_appointments=1
        )
        service.materialize_date(db, early.id, MONDAY)
        slots = service.list_available_slots(db, schedule.doctor_id, MONDAY)
        assert [s.schedule_id for s in slots] == [early.id, schedule.id]

    def test_unknown_doctor(self, db):
        with pytest.raises(NotFoundError):
            service.list_available_slots(db, 404, MONDAY)


class TestScheduleApi:
    def test_create_and_materialize(self, client, doctor):
        response = client.post("/api/v1/schedules/", json={
            "doctor_id": doctor.id,
            "work_day": "MONDAY",
            "start_time": "09:00",
            "end_time": "12:00",
            "max_appointments": 3
        })
        assert response.status_code == 201
        schedule_id = response.json()["id"]

        response = client.post(f"/api/v1/schedules/{schedule_id}/dates", json={"date": MONDAY.isoformat()})
        assert response.status_code == 201
        assert response.json()["status"] == "ACTIVE"

        response = client.post(f"/api/v1/schedules/{schedule_id}/dates", json={"date": MONDAY.isoformat()})
        assert response.status_code == 409

        response = client.get(f"/api/v1/schedules/doctor/{doctor.id}/slots", params={"date": MONDAY.isoformat()})
        assert response.status_code == 200
        assert response.json()[0]["remaining"] == 3

    def test_invalid_window_is_422(self, client, doctor):
        response = client.post("/api/v1/schedules/", json={
            "doctor_id": doctor.id,
            "work_day": "MONDAY",
            "start_time": "12:00",
            "end_time": "09:00",
            "max_appointments": 3
        })
        assert response.status_code == 422

    def test_offset_time_is_422(self, client, doctor):
        response = client.post("/api/v1/schedules/", json={
            "doctor_id": doctor.id,
            "work_day": "MONDAY",
            "start_time": "09:00Z",
            "end_time": "12:00",
            "max_appointments": 3
        })
        assert response.status_code == 422

    def test_clearing_work_day_is_422(self, client, schedule):
        response = client.put(f"/api/v1/schedules/{schedule.id}", json={"work_day": None})
        assert response.status_code == 422

    def test_availability_endpoint(self, client, schedule, schedule_date):
        response = client.get(
            f"/api/v1/schedules/doctor/{schedule.doctor_id}/availability", params={"date": MONDAY.isoformat()}
        )
        assert response.status_code == 200
        assert response.json()["available"] is True


def test_sunday_date_materialized_twice_conflicts(db, doctor):
    sunday_schedule = service.create_weekly_template(
        db, doctor.id, WorkDay.SUNDAY, time(8, 0), time(11, 0), max_appointments=4
    )
    service.materialize_date(db, sunday_schedule.id, date(2025, 6, 1), status=ScheduleDateStatus.ACTIVE)
    with pytest.raises(ConflictError):
        service.materialize_date(db, sunday_schedule.id, date(2025, 6, 1), status=ScheduleDateStatus.ACTIVE)
