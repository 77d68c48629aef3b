import os

import pytest
from sqlalchemy.exc import SQLAlchemyError

from faxsign.errors import NotFoundError, PermissionDenied, StateConflictError, ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.faxes.models import Fax, FaxPermission, FaxStatus
from faxsign.modules.faxes.services import FaxService, IncomingFile
from faxsign.modules.faxes.services.fax_service import normalize_user_ids
from faxsign.modules.users.models import UserRole

MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED = ["application/pdf", "image/jpeg", "image/png", "image/tiff"]


def upload(session, user, files, upload_dir, group_id=None, fax_number="555-0100", sender_name="Acme"):
    return FaxService.upload_faxes(
        session, Principal.from_user(user), files,
        fax_number=fax_number, sender_name=sender_name, group_id=group_id,
        upload_dir=upload_dir, max_file_size=MAX_FILE_SIZE, allowed_content_types=ALLOWED,
    )


def pdf_file(example_pdf, name="scan.pdf"):
    return IncomingFile(filename=name, content_type="application/pdf", contents=example_pdf)


def test_grouped_upload_creates_one_row_per_file(session, make_department, make_user, upload_dir, example_pdf):
    faxes_dept = make_department("Faxes")
    intake = make_user(UserRole.FAX_INTAKE, department=faxes_dept)
    files = [
        pdf_file(example_pdf, "page1.pdf"),
        IncomingFile(filename="page2.png", content_type="image/png", contents=b"\x89PNG fake"),
        IncomingFile(filename="page3.tif", content_type="image/tiff", contents=b"II*\x00 fake"),
    ]

    faxes = upload(session, intake, files, upload_dir, group_id="tok-123")

    assert len(faxes) == 3
    assert {f.group_id for f in faxes} == {"tok-123"}
    assert {f.status for f in faxes} == {FaxStatus.PENDING}
    assert {f.assigned_department_id for f in faxes} == {faxes_dept.id}
    assert {f.sender_name for f in faxes} == {"Acme"}
    assert {f.fax_number for f in faxes} == {"555-0100"}
    assert len({f.file_path for f in faxes}) == 3
    assert all(os.path.exists(f.file_path) for f in faxes)
    assert faxes[0].page_count == 1
    assert faxes[1].page_count is None


def test_several_files_without_token_still_form_a_group(session, make_user, upload_dir, example_pdf):
    manager = make_user(UserRole.MANAGER)
    faxes = upload(session, manager, [pdf_file(example_pdf), pdf_file(example_pdf)], upload_dir)
    assert faxes[0].group_id is not None
    assert faxes[0].group_id == faxes[1].group_id


def test_single_file_without_token_is_a_group_of_one(session, make_user, upload_dir, example_pdf):
    admin = make_user(UserRole.ADMIN)
    faxes = upload(session, admin, [pdf_file(example_pdf)], upload_dir)
    assert faxes[0].group_id is None
    assert faxes[0].assigned_department_id is None


def test_upload_into_existing_group_joins_its_department_and_permissions(
    session, make_department, make_user, upload_dir, example_pdf
):
    faxes_dept = make_department("Faxes")
    hr = make_department("HR")
    intake = make_user(UserRole.FAX_INTAKE, department=faxes_dept)
    manager = make_user(UserRole.MANAGER, department=hr)
    alice = make_user(department=hr)
    first = upload(session, intake, [pdf_file(example_pdf), pdf_file(example_pdf)], upload_dir, group_id="tok")
    FaxService.assign_department(session, Principal.from_user(manager), first[0].id, hr.id)
    FaxService.set_permissions(session, Principal.from_user(manager), first[0].id, [alice.id])

    later = upload(session, intake, [pdf_file(example_pdf)], upload_dir, group_id="tok")

    session.expire_all()
    members = session.query(Fax).filter(Fax.group_id == "tok").all()
    assert len(members) == 3
    assert {f.assigned_department_id for f in members} == {hr.id}
    rows = session.query(FaxPermission.fax_id, FaxPermission.user_id).all()
    assert sorted(rows) == sorted((f.id, alice.id) for f in members)
    assert later[0].id in {f.id for f in members}


def test_confirmed_group_rejects_more_files(session, make_user, make_fax, upload_dir, example_pdf):
    intake = make_user(UserRole.FAX_INTAKE)
    make_fax(intake, group_id="done", status=FaxStatus.CONFIRMED)
    before = set(os.listdir(upload_dir))

    with pytest.raises(StateConflictError):
        upload(session, intake, [pdf_file(example_pdf)], upload_dir, group_id="done")
    assert session.query(Fax).filter(Fax.group_id == "done").count() == 1
    assert set(os.listdir(upload_dir)) == before


def test_standard_user_cannot_upload(session, make_user, upload_dir, example_pdf):
    user = make_user()
    with pytest.raises(PermissionDenied):
        upload(session, user, [pdf_file(example_pdf)], upload_dir)
    assert session.query(Fax).count() == 0


def test_one_bad_file_rejects_the_whole_submission(session, make_user, upload_dir, example_pdf):
    intake = make_user(UserRole.FAX_INTAKE)
    files = [
        pdf_file(example_pdf),
        IncomingFile(filename="notes.docx", content_type="application/msword", contents=b"doc"),
    ]
    with pytest.raises(ValidationError, match="Invalid file type"):
        upload(session, intake, files, upload_dir, group_id="g")
    assert session.query(Fax).count() == 0
    assert os.listdir(upload_dir) == []


def test_damaged_pdf_is_rejected(session, make_user, upload_dir):
    intake = make_user(UserRole.FAX_INTAKE)
    bad = IncomingFile(filename="broken.pdf", content_type="application/pdf", contents=b"not a pdf")
    with pytest.raises(ValidationError, match="PDF"):
        upload(session, intake, [bad], upload_dir)


def test_oversized_file_is_rejected(session, make_user, upload_dir):
    intake = make_user(UserRole.FAX_INTAKE)
    big = IncomingFile(filename="big.png", content_type="image/png", contents=b"0" * (MAX_FILE_SIZE + 1))
    with pytest.raises(ValidationError, match="maximum"):
        upload(session, intake, [big], upload_dir)


def test_sender_and_number_are_required(session, make_user, upload_dir, example_pdf):
    intake = make_user(UserRole.FAX_INTAKE)
    with pytest.raises(ValidationError):
        upload(session, intake, [pdf_file(example_pdf)], upload_dir, sender_name="  ")


def test_listing_filters_and_enriches_rows(session, make_department, make_user, make_fax):
    hr = make_department("HR")
    finance = make_department("Finance")
    intake = make_user(UserRole.FAX_INTAKE)
    hr_user = make_user(department=hr)
    finance_user = make_user(department=finance)

    hr_fax = make_fax(intake, department=hr)
    finance_fax = make_fax(intake, department=finance)
    unassigned = make_fax(intake)
    restricted = make_fax(intake, department=finance)
    session.add(FaxPermission(fax_id=restricted.id, user_id=hr_user.id))
    session.commit()

    rows = FaxService.list_faxes(session, Principal.from_user(hr_user))
    assert [r["id"] for r in rows] == [restricted.id, hr_fax.id]
    by_id = {r["id"]: r for r in rows}
    assert by_id[restricted.id]["permissions_count"] == 1
    assert by_id[restricted.id]["is_permitted"] is True
    assert by_id[hr_fax.id]["permissions_count"] == 0
    assert by_id[hr_fax.id]["is_permitted"] is False

    finance_rows = FaxService.list_faxes(session, Principal.from_user(finance_user))
    assert [r["id"] for r in finance_rows] == [finance_fax.id]

    everything = FaxService.list_faxes(session, Principal.from_user(intake))
    assert {r["id"] for r in everything} == {hr_fax.id, finance_fax.id, unassigned.id, restricted.id}


def test_get_fax_hides_other_departments(session, make_department, make_user, make_fax):
    hr = make_department("HR")
    finance = make_department("Finance")
    intake = make_user(UserRole.FAX_INTAKE)
    finance_user = make_user(department=finance)
    fax = make_fax(intake, department=hr)

    with pytest.raises(PermissionDenied):
        FaxService.get_fax(session, Principal.from_user(finance_user), fax.id)
    with pytest.raises(NotFoundError):
        FaxService.get_fax(session, Principal.from_user(finance_user), 9999)


def test_admin_cannot_assign_department(session, make_department, make_user, make_fax):
    hr = make_department("HR")
    admin = make_user(UserRole.ADMIN)
    fax = make_fax(admin)
    with pytest.raises(PermissionDenied):
        FaxService.assign_department(session, Principal.from_user(admin), fax.id, hr.id)
    session.refresh(fax)
    assert fax.assigned_department_id is None


def test_assign_department_fans_out_to_group(session, make_department, make_user, make_fax):
    faxes_dept = make_department("Faxes")
    hr = make_department("HR")
    manager = make_user(UserRole.MANAGER)
    members = [make_fax(manager, department=faxes_dept, group_id="batch") for _ in range(3)]
    other = make_fax(manager, department=faxes_dept)

    FaxService.assign_department(session, Principal.from_user(manager), members[1].id, hr.id)

    session.expire_all()
    assert {session.get(Fax, f.id).assigned_department_id for f in members} == {hr.id}
    assert session.get(Fax, other.id).assigned_department_id == faxes_dept.id


def test_assign_department_validates_input(session, make_user, make_fax):
    manager = make_user(UserRole.MANAGER)
    fax = make_fax(manager)
    principal = Principal.from_user(manager)
    with pytest.raises(NotFoundError):
        FaxService.assign_department(session, principal, 4242, 1)
    with pytest.raises(ValidationError):
        FaxService.assign_department(session, principal, fax.id, None)
    with pytest.raises(ValidationError, match="Invalid department_id"):
        FaxService.assign_department(session, principal, fax.id, 777)


def test_permission_update_replaces_set_on_every_member(session, make_department, make_user, make_fax):
    hr = make_department("HR")
    manager = make_user(UserRole.MANAGER)
    alice = make_user(department=hr)
    bob = make_user(department=hr)
    members = [make_fax(manager, department=hr, group_id="batch") for _ in range(2)]
    principal = Principal.from_user(manager)

    FaxService.set_permissions(session, principal, members[0].id, [alice.id, bob.id])
    assert session.query(FaxPermission).count() == 4

    result = FaxService.set_permissions(session, principal, members[1].id, [bob.id])
    assert result["user_ids"] == [bob.id]
    assert result["fax_ids"] == [f.id for f in members]
    rows = session.query(FaxPermission.fax_id, FaxPermission.user_id).all()
    assert sorted(rows) == sorted((f.id, bob.id) for f in members)


def test_clearing_permissions_reverts_to_department_visibility(session, make_department, make_user, make_fax):
    hr = make_department("HR")
    finance = make_department("Finance")
    manager = make_user(UserRole.MANAGER)
    hr_user = make_user(department=hr)
    outsider = make_user(department=finance)
    fax = make_fax(manager, department=hr)
    principal = Principal.from_user(manager)

    FaxService.set_permissions(session, principal, fax.id, [outsider.id])
    assert [r["id"] for r in FaxService.list_faxes(session, Principal.from_user(outsider))] == [fax.id]
    assert FaxService.list_faxes(session, Principal.from_user(hr_user)) == []

    result = FaxService.set_permissions(session, principal, fax.id, [])
    assert result["restricted"] is False
    assert FaxService.list_faxes(session, Principal.from_user(outsider)) == []
    assert [r["id"] for r in FaxService.list_faxes(session, Principal.from_user(hr_user))] == [fax.id]


def test_malformed_user_ids_are_ignored(session, make_user, make_fax):
    manager = make_user(UserRole.MANAGER)
    user = make_user()
    fax = make_fax(manager)

    result = FaxService.set_permissions(
        session, Principal.from_user(manager), fax.id, ["abc", -3, 0, None, 1.5, True, str(user.id)]
    )
    assert result["user_ids"] == [user.id]


def test_normalize_user_ids():
    assert normalize_user_ids([3, "4", " 5 ", "x", -1, 0, 3, False, {"id": 1}, 10**30, str(2**63)]) == [3, 4, 5]
    assert normalize_user_ids([2**63 - 1]) == [2**63 - 1]


def test_unknown_user_ids_leave_permissions_untouched(session, make_user, make_fax):
    manager = make_user(UserRole.MANAGER)
    user = make_user()
    fax = make_fax(manager)
    principal = Principal.from_user(manager)
    FaxService.set_permissions(session, principal, fax.id, [user.id])

    with pytest.raises(ValidationError):
        FaxService.set_permissions(session, principal, fax.id, [user.id, 9999])
    assert session.query(FaxPermission.user_id).all() == [(user.id,)]


def test_only_managers_manage_permissions(session, make_user, make_fax):
    admin = make_user(UserRole.ADMIN)
    fax = make_fax(admin)
    with pytest.raises(PermissionDenied):
        FaxService.set_permissions(session, Principal.from_user(admin), fax.id, [admin.id])
    with pytest.raises(PermissionDenied):
        FaxService.get_permissions(session, Principal.from_user(admin), fax.id)
    with pytest.raises(NotFoundError):
        FaxService.set_permissions(session, Principal.from_user(make_user(UserRole.MANAGER)), 555, [])


def test_failed_permission_write_rolls_back(session, make_user, make_fax, monkeypatch):
    manager = make_user(UserRole.MANAGER)
    alice = make_user()
    bob = make_user()
    members = [make_fax(manager, group_id="batch") for _ in range(2)]
    principal = Principal.from_user(manager)
    FaxService.set_permissions(session, principal, members[0].id, [alice.id])

    original_add = session.add
    calls = {"n": 0}

    def failing_add(instance, *args, **kwargs):
        if isinstance(instance, FaxPermission):
            calls["n"] += 1
            if calls["n"] == 2:
                raise SQLAlchemyError("disk full")
        return original_add(instance, *args, **kwargs)

    monkeypatch.setattr(session, "add", failing_add)
    with pytest.raises(SQLAlchemyError):
        FaxService.set_permissions(session, principal, members[0].id, [bob.id])
    monkeypatch.undo()

    rows = session.query(FaxPermission.fax_id, FaxPermission.user_id).all()
    assert sorted(rows) == sorted((f.id, alice.id) for f in members)
