import pytest
from sqlalchemy.exc import OperationalError

from user_files import crud
from user_files.database import Base, engine
from user_files.errors import MetadataPersistError, StoreQueryError


def _seed(db, user_id, name, deleted=False):
    record = crud.create_file(db, user_id, name, 10, "text/plain", f"{user_id}/{name}")
    if deleted:
        crud.soft_delete_file(db, user_id, record.file_id)
    return record


class TestFileQueries:
    def test_create_file_sets_defaults(self, db):
        record = crud.create_file(db, "42", "report.pdf", 2048, "application/pdf", "42/x.pdf")

        assert record.file_id is not None
        assert record.user_id == "42"
        assert record.is_deleted is False
        assert record.file_size == 2048

    def test_list_excludes_deleted_and_foreign_records(self, db):
        mine = _seed(db, "42", "a.txt")
        _seed(db, "42", "gone.txt", deleted=True)
        _seed(db, "7", "theirs.txt")

        records = crud.list_active_files(db, "42")

        assert [r.file_id for r in records] == [mine.file_id]

    def test_list_for_user_without_files_is_empty(self, db):
        _seed(db, "7", "theirs.txt")

        assert crud.list_active_files(db, "42") == []

    def test_rename_only_touches_own_record(self, db):
        theirs = _seed(db, "7", "theirs.txt")

        assert crud.rename_file(db, "42", theirs.file_id, "stolen.txt") == 0
        db.refresh(theirs)
        assert theirs.file_name == "theirs.txt"

    def test_rename_still_applies_to_soft_deleted_record(self, db):
        record = _seed(db, "42", "old.txt", deleted=True)

        assert crud.rename_file(db, "42", record.file_id, "new.txt") == 1
        db.refresh(record)
        assert record.file_name == "new.txt"

    def test_soft_delete_is_idempotent(self, db):
        record = _seed(db, "42", "a.txt")

        assert crud.soft_delete_file(db, "42", record.file_id) == 1
        assert crud.soft_delete_file(db, "42", record.file_id) == 1
        assert crud.get_active_file(db, "42", record.file_id) is None

    def test_get_active_file_is_scoped_by_user(self, db):
        record = _seed(db, "42", "a.txt")

        assert crud.get_active_file(db, "42", record.file_id).file_id == record.file_id
        assert crud.get_active_file(db, "7", record.file_id) is None

    def test_insert_failure_raises_metadata_persist_error(self, db, monkeypatch):
        def boom():
            raise OperationalError("INSERT INTO files", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", boom)

        with pytest.raises(MetadataPersistError):
            crud.create_file(db, "42", "a.txt", 1, "text/plain", "42/a.txt")

    def test_query_failure_raises_store_query_error(self, db):
        Base.metadata.drop_all(bind=engine)

        with pytest.raises(StoreQueryError):
            crud.list_active_files(db, "42")
        with pytest.raises(StoreQueryError):
            crud.soft_delete_file(db, "42", 1)
