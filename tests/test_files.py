"""Tests for file URL building and file errors."""

from urllib.parse import parse_qs, urlsplit

import pytest

from conftest import BASE_URL
from pocketbase_mcp.core import files
from pocketbase_mcp.core.errors import ClientResponseError, FileError, FileErrorType

RECORD = {
    "id": "rec000000000001",
    "collectionId": "pbc_1234567890",
    "collectionName": "posts",
    "created": "2024-01-01 00:00:00.000Z",
    "updated": "2024-01-01 00:00:00.000Z",
    "title": "Not a file",
    "cover": "cover_a1b2c3.jpg",
    "attachments": ["spec_x1.pdf", "notes_y2.txt", 7],
    "homepage": "example.com",
}


@pytest.mark.parametrize("filename", ["cover_a1b2c3.jpg", "report-2024.final.pdf", "a.md"])
def test_file_url_contains_every_part(client, filename):
    result = files.get_file_url(client, RECORD, filename)
    url = result["url"]

    assert RECORD["collectionId"] in url
    assert RECORD["id"] in url
    assert filename in url
    parsed = urlsplit(url)
    assert parsed.scheme == "http" and parsed.netloc == "pb.test:8090"
    assert files.is_valid_file_url(url, BASE_URL)


def test_with_token_only_when_token_present(client):
    url = files.get_file_url(client, RECORD, "cover_a1b2c3.jpg", with_token=True)["url"]
    assert "token" not in parse_qs(urlsplit(url).query)

    client.save_auth("secret-token")
    url = files.get_file_url(client, RECORD, "cover_a1b2c3.jpg", with_token=True, thumb="100x100")["url"]
    query = parse_qs(urlsplit(url).query)
    assert query == {"token": ["secret-token"], "thumb": ["100x100"]}


def test_invalid_inputs_raise_file_errors(client):
    with pytest.raises(FileError) as excinfo:
        files.get_file_url(client, {"collectionId": "c"}, "a.jpg")
    assert excinfo.value.code is FileErrorType.FILE_OPERATION_FAILED

    with pytest.raises(FileError) as excinfo:
        files.get_file_url(client, RECORD, "   ")
    assert excinfo.value.code is FileErrorType.FILE_NOT_FOUND

    with pytest.raises(FileError) as excinfo:
        files.get_field_file_urls(client, RECORD, "missing")
    assert excinfo.value.code is FileErrorType.INVALID_FILE_FIELD


def test_field_file_urls(client):
    result = files.get_field_file_urls(client, RECORD, "attachments")
    assert [f["filename"] for f in result["files"]] == ["spec_x1.pdf", "notes_y2.txt"]
    assert {f["field"] for f in result["files"]} == {"attachments"}
    assert result["recordId"] == RECORD["id"]


def test_detect_file_fields():
    detected = files.detect_file_fields(RECORD)
    assert [(d["field"], d["filenames"]) for d in detected] == [
        ("cover", ["cover_a1b2c3.jpg"]),
        ("attachments", ["spec_x1.pdf", "notes_y2.txt"]),
        ("homepage", ["example.com"]),
    ]
    assert files.detect_file_fields(RECORD, ["title"]) == [
        {"field": "title", "filenames": ["Not a file"], "urls": []},
    ]
    assert files.detect_file_fields({}) == []


def test_all_file_urls(client):
    result = files.get_all_file_urls(client, RECORD, ["cover", "attachments"])
    assert [f["filename"] for f in result["files"]] == ["cover_a1b2c3.jpg", "spec_x1.pdf", "notes_y2.txt"]


@pytest.mark.parametrize(
    "url",
    [
        "",
        None,
        "not a url",
        "http://other:8090/api/files/c/r/a.jpg",
        "http://pb.test:8090/api/records/c/r/a.jpg",
        "http://pb.test:8090/api/files/c/r/",
        "http://pb.test:8090/api/files/c-1/r/a.jpg",
    ],
)
def test_invalid_file_urls(url):
    assert files.is_valid_file_url(url, BASE_URL) is False


@pytest.mark.parametrize(
    ("url", "base_url"),
    [
        ("http://h/api/files/c1/r1/a.jpg", "http://h:80"),
        ("http://h:80/api/files/c1/r1/a.jpg", "http://h"),
        ("https://h/api/files/c1/r1/a.jpg", "https://h:443/"),
    ],
)
def test_default_port_is_same_origin(url, base_url):
    assert files.is_valid_file_url(url, base_url) is True


def test_other_port_is_other_origin():
    assert files.is_valid_file_url("https://h/api/files/c1/r1/a.jpg", "https://h:8443") is False
    assert files.is_valid_file_url("http://h:443/api/files/c1/r1/a.jpg", "https://h") is False


def test_handle_file_error():
    assert files.handle_file_error(ClientResponseError("", status=404))["code"] == "FILE_NOT_FOUND"
    assert files.handle_file_error(ClientResponseError("", status=403), "Download")["error"] == "Download: Access denied"

    envelope = files.handle_file_error(ClientResponseError("", status=500))
    assert envelope["code"] == "SERVER_ERROR"
    assert envelope["suggestion"].endswith("verify the file exists and you have proper permissions.")

    error = files.create_file_error(FileErrorType.INVALID_FILE_FIELD, "bad field")
    assert files.handle_file_error(error) == {
        "success": False,
        "error": "bad field",
        "code": "INVALID_FILE_FIELD",
        "suggestion": "Check that the field name is correct and contains file data.",
    }
