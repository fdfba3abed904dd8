"""Tests for the file API routes."""

import io
import json
from unittest.mock import patch

from fastapi.testclient import TestClient

from filedrop.core.exceptions import IOFailureError, PersistFailureError
from filedrop.main import create_app


def test_upload_single_file(client, upload_dir):
    """Test uploading one file returns its record and stores its content."""
    content = b"%PDF" + b"x" * 499996
    files = [("files", ("report.pdf", io.BytesIO(content), "application/pdf"))]

    response = client.post("/upload", files=files)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Files uploaded successfully"
    assert len(data["files"]) == 1

    record = data["files"][0]
    assert record["originalFilename"] == "report.pdf"
    assert record["size"] == 500000
    assert record["mimeType"] == "application/pdf"
    assert record["storedFilename"] == f"{record['uid']}.pdf"
    assert record["uploadTime"].endswith("Z")
    assert (upload_dir / record["storedFilename"]).read_bytes() == content


def test_upload_multiple_files(upload, registry, upload_dir):
    """Test that N files in one request give N records with distinct ids."""
    data = upload(
        ("a.txt", b"alpha", "text/plain"),
        ("b.csv", b"x,y\n1,2", "text/csv"),
        ("c", b"no extension", "application/octet-stream"),
    )

    uids = [f["uid"] for f in data["files"]]
    assert len(set(uids)) == 3
    assert len(registry) == 3
    assert len(list(upload_dir.iterdir())) == 3
    assert data["files"][2]["storedFilename"] == uids[2]


def test_upload_without_files(client):
    """Test upload with nothing attached."""
    response = client.post("/upload")

    assert response.status_code == 400
    assert response.json() == {"error": "No files uploaded"}


def test_upload_with_other_form_fields_only(client, registry):
    """Test upload with form data but no files field."""
    response = client.post("/upload", data={"note": "hello"})

    assert response.status_code == 400
    assert response.json()["error"] == "No files uploaded"
    assert len(registry) == 0


def test_upload_ignores_parts_without_filename(client, registry):
    """Test that an empty file input is not stored as a file."""
    files = [("files", ("", io.BytesIO(b""), "application/octet-stream"))]

    response = client.post("/upload", files=files)

    assert response.status_code == 400
    assert len(registry) == 0


def test_upload_partial_failure_keeps_earlier_files(client, app, registry):
    """Test that a storage failure mid-request does not roll back earlier files."""
    blob_store = app.state.blob_store
    original_put = blob_store.put
    calls = []

    async def flaky_put(file_data, file_name):
        calls.append(file_name)
        if len(calls) > 1:
            raise IOFailureError("No space left on device")
        return await original_put(file_data, file_name)

    files = [
        ("files", (f"file{i}.txt", io.BytesIO(b"data"), "text/plain"))
        for i in range(3)
    ]
    with patch.object(blob_store, "put", flaky_put):
        response = client.post("/upload", files=files)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "File upload failed (1 of 3 files stored)"
    assert [f["originalFilename"] for f in body["files"]] == ["file0.txt"]
    assert body["files"][0]["uid"] in registry
    listed = client.get("/files").json()
    assert [f["originalFilename"] for f in listed] == ["file0.txt"]


def test_upload_succeeds_when_snapshot_save_fails(client, registry):
    """Test that a snapshot failure is logged, not surfaced or rolled back."""
    files = [("files", ("notes.txt", io.BytesIO(b"hello"), "text/plain"))]

    with patch.object(registry, "_persist", side_effect=PersistFailureError("read-only")):
        response = client.post("/upload", files=files)

    assert response.status_code == 200
    uid = response.json()["files"][0]["uid"]
    assert uid in registry


def test_list_files_empty(client):
    """Test listing with no uploads."""
    response = client.get("/files")

    assert response.status_code == 200
    assert response.json() == []


def test_list_files_includes_each_upload_once(client, upload):
    """Test that every uploaded record is listed exactly once."""
    first = upload(("one.txt", b"1", "text/plain"))["files"]
    second = upload(("two.txt", b"22", "text/plain"), ("three.txt", b"333", "text/plain"))["files"]

    response = client.get("/files")

    assert response.status_code == 200
    listed = response.json()
    assert sorted(f["uid"] for f in listed) == sorted(f["uid"] for f in first + second)
    assert set(listed[0]) == {
        "uid",
        "originalFilename",
        "storedFilename",
        "size",
        "mimeType",
        "uploadTime",
    }


def test_download_returns_original_bytes(client, upload):
    """Test download streams identical bytes with the recorded headers."""
    content = bytes(range(256)) * 400
    record = upload(("my report.pdf", content, "application/pdf"))["files"][0]

    response = client.get(f"/download/{record['uid']}")

    assert response.status_code == 200
    assert response.content == content
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-length"] == str(record["size"])
    assert response.headers["content-disposition"] == 'attachment; filename="my%20report.pdf"'


def test_download_encodes_non_ascii_filename(client, upload):
    """Test that the disposition filename is URL encoded."""
    record = upload(("résumé (final).docx", b"doc", "application/octet-stream"))["files"][0]

    response = client.get(f"/download/{record['uid']}")

    assert response.status_code == 200
    assert (
        response.headers["content-disposition"]
        == 'attachment; filename="r%C3%A9sum%C3%A9%20(final).docx"'
    )


def test_download_empty_file(client, upload):
    """Test downloading a zero byte file."""
    record = upload(("empty.bin", b"", "application/octet-stream"))["files"][0]

    response = client.get(f"/download/{record['uid']}")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["content-length"] == "0"


def test_download_unknown_id(client):
    """Test download of an id that was never uploaded."""
    response = client.get("/download/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "File not found"}


def test_download_missing_blob_removes_record(client, upload, upload_dir, app_settings):
    """Test that a record whose content vanished is removed on download."""
    record = upload(("gone.txt", b"bye", "text/plain"))["files"][0]
    (upload_dir / record["storedFilename"]).unlink()

    response = client.get(f"/download/{record['uid']}")

    assert response.status_code == 404
    assert response.json() == {"error": "File not found on server"}
    assert client.get("/files").json() == []

    with open(app_settings.REGISTRY_PATH, encoding="utf-8") as f:
        assert record["uid"] not in json.load(f)

    # A second attempt is now an unknown id
    response = client.get(f"/download/{record['uid']}")
    assert response.status_code == 404
    assert response.json() == {"error": "File not found"}


def test_delete_file(client, upload, upload_dir, registry):
    """Test delete removes content and record, and a repeat delete is 404."""
    record = upload(("doomed.txt", b"content", "text/plain"))["files"][0]

    response = client.delete(f"/files/{record['uid']}")

    assert response.status_code == 200
    assert response.json() == {"message": "File deleted successfully"}
    assert not (upload_dir / record["storedFilename"]).exists()
    assert record["uid"] not in registry
    assert client.get("/files").json() == []

    response = client.delete(f"/files/{record['uid']}")
    assert response.status_code == 404
    assert response.json() == {"error": "File not found"}


def test_delete_when_blob_already_gone(client, upload, upload_dir, registry):
    """Test delete still succeeds when the stored content is already missing."""
    record = upload(("ghost.txt", b"boo", "text/plain"))["files"][0]
    (upload_dir / record["storedFilename"]).unlink()

    response = client.delete(f"/files/{record['uid']}")

    assert response.status_code == 200
    assert record["uid"] not in registry


def test_delete_blob_io_failure(client, app, upload, registry):
    """Test delete reports 500 and keeps the record if content removal fails."""
    record = upload(("locked.txt", b"x", "text/plain"))["files"][0]

    with patch.object(
        app.state.blob_store, "delete", side_effect=IOFailureError("Permission denied")
    ):
        response = client.delete(f"/files/{record['uid']}")

    assert response.status_code == 500
    assert response.json() == {"error": "File deletion failed"}
    assert record["uid"] in registry


def test_restart_reproduces_records(client, upload, app_settings):
    """Test that reloading the snapshot gives the same live records."""
    upload(("a.txt", b"a", "text/plain"), ("b.txt", b"bb", "text/plain"))
    before = client.get("/files").json()

    restarted = TestClient(create_app(app_settings))
    after = restarted.get("/files").json()

    assert sorted(after, key=lambda f: f["uid"]) == sorted(before, key=lambda f: f["uid"])
    response = restarted.get(f"/download/{before[0]['uid']}")
    assert response.status_code == 200


def test_report_pdf_lifecycle(client):
    """Test upload, list, download and delete of a single PDF."""
    content = b"p" * 500000
    files = [("files", ("report.pdf", io.BytesIO(content), "application/pdf"))]

    record = client.post("/upload", files=files).json()["files"][0]
    assert record["originalFilename"] == "report.pdf"
    assert record["size"] == 500000

    assert record["uid"] in [f["uid"] for f in client.get("/files").json()]

    download = client.get(f"/download/{record['uid']}")
    assert download.status_code == 200
    assert len(download.content) == 500000
    assert download.headers["content-type"] == "application/pdf"

    assert client.delete(f"/files/{record['uid']}").status_code == 200
    assert record["uid"] not in [f["uid"] for f in client.get("/files").json()]


def test_delete_succeeds_when_snapshot_save_fails(client, upload, upload_dir, registry):
    """Test delete answers 200 and drops the record even if the snapshot is not saved."""
    record = upload(("keep.txt", b"content", "text/plain"))["files"][0]

    with patch.object(registry, "_persist", side_effect=PersistFailureError("read-only")):
        response = client.delete(f"/files/{record['uid']}")

    assert response.status_code == 200
    assert response.json() == {"message": "File deleted successfully"}
    assert record["uid"] not in registry
    assert not (upload_dir / record["storedFilename"]).exists()


def test_missing_blob_cleanup_when_snapshot_save_fails(client, upload, upload_dir, registry):
    """Test the missing-content path still answers 404 and drops the record."""
    record = upload(("vanished.txt", b"bye", "text/plain"))["files"][0]
    (upload_dir / record["storedFilename"]).unlink()

    with patch.object(registry, "_persist", side_effect=PersistFailureError("read-only")):
        response = client.get(f"/download/{record['uid']}")

    assert response.status_code == 404
    assert response.json() == {"error": "File not found on server"}
    assert record["uid"] not in registry


def test_snapshot_with_mismatched_key_is_not_listed(app_settings, upload_dir):
    """Test a record filed under another key never shows up as an unreachable file."""
    upload_dir.mkdir(parents=True)
    (upload_dir / "real.txt").write_bytes(b"abc")
    entry = {
        "uid": "other",
        "originalFilename": "real.txt",
        "storedFilename": "real.txt",
        "size": 3,
        "mimeType": "text/plain",
        "uploadTime": "2024-05-01T12:00:00.000Z",
    }
    with open(app_settings.REGISTRY_PATH, "w", encoding="utf-8") as f:
        json.dump({"key-1": entry}, f)

    client = TestClient(create_app(app_settings))

    assert client.get("/files").json() == []
    assert client.get("/download/other").status_code == 404
