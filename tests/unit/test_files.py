import uuid
from pathlib import Path

import pytest

from src.core.errors import ForbiddenError, NotFoundError


@pytest.fixture
def other_user(accounts):
    return accounts.register("bob", "secret123", "bob@example.com")


def test_upload_registers_file(files, user, make_upload):
    result = files.upload_file(user.id, make_upload(user.id, 2, name="report.pdf"))

    assert result.file.owner_id == user.id
    assert result.file.original_name == "report.pdf"
    assert result.file.size_mb == pytest.approx(2.0)
    assert result.file.public_url == f"http://testserver/api/v1/files/{result.file.id}/download"
    assert result.file.download_count == 0
    assert result.message == "File hosted successfully!"


def test_list_files_newest_first(files, user, make_upload):
    first = files.upload_file(user.id, make_upload(user.id, 1, name="a.txt"))
    second = files.upload_file(user.id, make_upload(user.id, 1, name="b.txt"))

    listed = files.list_files(user.id)

    assert [f.id for f in listed] == [second.file.id, first.file.id]


def test_list_files_only_returns_own_files(files, user, other_user, make_upload):
    files.upload_file(user.id, make_upload(user.id, 1))

    assert files.list_files(other_user.id) == []


def test_delete_removes_artifact(files, user, make_upload):
    meta = make_upload(user.id, 1)
    uploaded = files.upload_file(user.id, meta)

    files.delete_file(user.id, uploaded.file.id)

    assert not Path(meta.storage_path).exists()
    with pytest.raises(NotFoundError):
        files.get_file(uploaded.file.id)


def test_delete_someone_elses_file_is_forbidden(files, store, user, other_user, make_upload):
    uploaded = files.upload_file(user.id, make_upload(user.id, 10))

    with pytest.raises(ForbiddenError):
        files.delete_file(other_user.id, uploaded.file.id)

    assert store.get_file(uploaded.file.id) is not None
    assert store.get_account(user.id).storage_used == pytest.approx(10.0)


def test_delete_unknown_file(files, user):
    with pytest.raises(NotFoundError):
        files.delete_file(user.id, uuid.uuid4())


def test_upload_for_unknown_account_cleans_up(files, make_upload):
    owner_id = uuid.uuid4()
    meta = make_upload(owner_id, 1)

    with pytest.raises(NotFoundError):
        files.upload_file(owner_id, meta)

    assert not Path(meta.storage_path).exists()


def test_record_download_increments_counter(files, user, make_upload):
    uploaded = files.upload_file(user.id, make_upload(user.id, 1))

    files.record_download(uploaded.file.id)
    record = files.record_download(uploaded.file.id)

    assert record.download_count == 2


def test_download_of_missing_artifact_is_not_found(files, user, make_upload):
    meta = make_upload(user.id, 1)
    uploaded = files.upload_file(user.id, meta)
    Path(meta.storage_path).unlink()

    with pytest.raises(NotFoundError):
        files.record_download(uploaded.file.id)
